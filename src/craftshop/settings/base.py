"""Base settings for Craftshop project."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent
SRC_DIR = BASE_DIR / "src"

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get("SECRET_KEY")

# Debug mode - override in dev.py
DEBUG = False

ALLOWED_HOSTS = []

# Application definition
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django.contrib.sitemaps",
]

THIRD_PARTY_APPS = [
    "rest_framework",
    "rest_framework.authtoken",
    "channels",
]

# Local apps
LOCAL_APPS = [
    "craftshop.core",
    "craftshop.catalog",
    "craftshop.store",
    "craftshop.payments",
    "craftshop.backoffice",
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "craftshop.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "craftshop.wsgi.application"
ASGI_APPLICATION = "craftshop.asgi.application"

# Database - PostgreSQL only
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("POSTGRES_DB", "craftshop"),
        "USER": os.environ.get("POSTGRES_USER", "postgres"),
        "PASSWORD": os.environ.get("POSTGRES_PASSWORD", "postgres"),
        "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
        "CONN_MAX_AGE": 60,
        "CONN_HEALTH_CHECKS": True,
    }
}

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

# Cache configuration
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": REDIS_URL,
    }
}

# Product update stream (WebSocket)
CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {"hosts": [REDIS_URL]},
    }
}

# Custom user model
AUTH_USER_MODEL = "core.User"

AUTHENTICATION_BACKENDS = [
    "craftshop.core.backends.EmailBackend",
]

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Karachi"
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Media files (uploaded site assets)
MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "media"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Store configuration
STORE_NAME = os.environ.get("STORE_NAME", "99 Arts and Crafts")
STORE_CURRENCY = os.environ.get("STORE_CURRENCY", "PKR")
SITE_URL = os.environ.get("SITE_URL", "http://localhost:8000").rstrip("/")
ASSET_BASE_URL = os.environ.get("ASSET_BASE_URL", f"{MEDIA_URL}site-assets/")
STORE_ADMIN_EMAIL = os.environ.get("STORE_ADMIN_EMAIL", "admin@example.com")
LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

# Shipping from the workshop in Muzaffargarh
STORE_SHIPPING = {
    "ORIGIN_CITY_ID": "pk-mzg",
    "LOCAL": {
        "rate": 100,
        "estimated_days": 1,
        "free_threshold": 1500,
        "description": "Same city delivery within Muzaffargarh",
    },
    "NATIONAL": {
        "rate": 250,
        "estimated_days": 2,
        "free_threshold": 3000,
        "description": "Standard delivery to urban areas",
    },
    "PROCESSING_DAYS": 1,
}

# Account details shown for bank-transfer payments
STORE_BANK_DETAILS = {
    "bank_name": os.environ.get("STORE_BANK_NAME", ""),
    "account_title": os.environ.get("STORE_BANK_ACCOUNT_TITLE", STORE_NAME),
    "account_number": os.environ.get("STORE_BANK_ACCOUNT_NUMBER", ""),
    "iban": os.environ.get("STORE_BANK_IBAN", ""),
}

# Email
EMAIL_BACKEND = "craftshop.core.mail.ResendEmailBackend"
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "orders@example.com")
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
RESEND_API_URL = os.environ.get("RESEND_API_URL", "https://api.resend.com")
RESEND_TIMEOUT = float(os.environ.get("RESEND_TIMEOUT", "10"))
TEST_EMAIL_OVERRIDE = os.environ.get("TEST_EMAIL_OVERRIDE", "")

# Stripe
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
STRIPE_API_VERSION = os.environ.get("STRIPE_API_VERSION", "2025-08-27.basil")

# JazzCash mobile wallet
JAZZCASH_MERCHANT_ID = os.environ.get("JAZZCASH_MERCHANT_ID", "")
JAZZCASH_PASSWORD = os.environ.get("JAZZCASH_PASSWORD", "")
JAZZCASH_INTEGRITY_SALT = os.environ.get("JAZZCASH_INTEGRITY_SALT", "")
JAZZCASH_POST_URL = os.environ.get(
    "JAZZCASH_POST_URL",
    "https://sandbox.jazzcash.com.pk/CustomerPortal/transactionmanagement/merchantform/",
)

# EasyPaisa mobile wallet
EASYPAISA_STORE_ID = os.environ.get("EASYPAISA_STORE_ID", "")
EASYPAISA_HASH_KEY = os.environ.get("EASYPAISA_HASH_KEY", "")
EASYPAISA_POST_URL = os.environ.get(
    "EASYPAISA_POST_URL",
    "https://easypaystg.easypaisa.com.pk/easypay/Index.jsf",
)

# Logging configuration
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "craftshop": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}
