import uuid

from apps.common.settings.base import *

DEBUG = True
SECRET_KEY = "Test secret"
ALLOWED_HOSTS = ["*"]

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PLATFORM_NAMESPACE = uuid.UUID("0b7e3a52-6a43-4c8e-9f0a-5d2c1e4b7a90")

# Lookups run inline so they share the test transaction's connection
FEES = {
    **FEES,
    'CONCURRENT_LOOKUPS': False,
}

LOGGING['loggers']['apps']['level'] = 'DEBUG'
