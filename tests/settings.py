"""
Django settings for testing django-tappay.

Minimal configuration required to run pytest-django tests.
"""

SECRET_KEY = "django-insecure-test-key-for-tappay-tests-only"

DEBUG = True

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "tappay",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# TapPay Test Configuration
TAPPAY_PARTNER_KEY = "partner_settings_key"
TAPPAY_MERCHANT_ID = "settings_merchant"
TAPPAY_ENV = "sandbox"

USE_TZ = True
TIME_ZONE = "Asia/Taipei"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
