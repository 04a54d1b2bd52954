"""Test settings for Craftshop project."""

from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret-key-not-for-production"
DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
AUTH_PASSWORD_VALIDATORS = []

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
TEST_EMAIL_OVERRIDE = ""

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

SITE_URL = "https://shop.example.com"
ASSET_BASE_URL = "https://cdn.example.com/site-assets/"
STORE_ADMIN_EMAIL = "admin@shop.example.com"
DEFAULT_FROM_EMAIL = "orders@shop.example.com"

STRIPE_SECRET_KEY = "sk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_dummy"

JAZZCASH_MERCHANT_ID = "MC12345"
JAZZCASH_PASSWORD = "jc-password"
JAZZCASH_INTEGRITY_SALT = "jc-salt"

EASYPAISA_STORE_ID = "EP999"
EASYPAISA_HASH_KEY = "ep-hash-key"
