"""Payments module: method catalogue, gateway signing, Stripe and reconciliation."""
