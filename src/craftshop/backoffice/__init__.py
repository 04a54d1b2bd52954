"""Back-office module: the admin JSON API."""
