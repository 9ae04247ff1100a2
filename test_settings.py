"""
These settings are here to use during tests, because django requires them.

In a real-world use case, apps in this project are installed into other
Django applications, so these settings will not be used.
"""

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": "default.db",
        "USER": "",
        "PASSWORD": "",
        "HOST": "",
        "PORT": "",
    }
}

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.messages",
    "django.contrib.sessions",
    # Admin
    "django.contrib.admin",
    # Our own apps
    "openblog_taxonomy.core.taxonomy.apps.TaxonomyConfig",
]

SECRET_KEY = "insecure-secret-key"

USE_TZ = True

######################### OPEN BLOG TAXONOMY SETTINGS ########################

OPENBLOG_TAXONOMY = {
    "CATEGORY_URL_PREFIX": "/category/",
    "PAGE_SIZE": 10,
}
