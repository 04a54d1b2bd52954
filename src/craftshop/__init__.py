"""Craftshop: storefront backend for a handcrafted home-decor shop."""
