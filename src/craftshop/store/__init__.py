"""Store module: cart, wishlist, checkout, orders and the newsletter."""
