# casa_di_barbara/settings.py
"""
Django settings for the Casa di Barbara booking site.
"""
from pathlib import Path
import os

import environ
from celery.schedules import crontab

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Environment ---
env = environ.Env(
    # set casting, default value
    DEBUG=(bool, False),
    AUTO_CANCEL_UNPAID_BOOKINGS=(bool, False),
)

env_file_path = os.path.join(BASE_DIR, '.env')
if os.path.exists(env_file_path):
    environ.Env.read_env(env_file=env_file_path)

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env('SECRET_KEY', default='django-insecure-casa-di-barbara-dev-key')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env('DEBUG')

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', default=['localhost', '127.0.0.1', 'casadibarbara.com', 'www.casadibarbara.com'])

CORS_ALLOWED_ORIGINS = env.list('CORS_ALLOWED_ORIGINS', default=[
    "https://casadibarbara.com",
    "https://www.casadibarbara.com",
    "http://localhost:5173",
    "http://localhost:3000",
])
CSRF_TRUSTED_ORIGINS = CORS_ALLOWED_ORIGINS

# Application definition
INSTALLED_APPS = [
    'jazzmin',
    'corsheaders',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework.authtoken',
    'django_filters',
    'core.apps.CoreConfig',
    'pricing.apps.PricingConfig',
    'reservations.apps.ReservationsConfig',
    'notifications.apps.NotificationsConfig',
    'content.apps.ContentConfig',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'casa_di_barbara.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'casa_di_barbara.wsgi.application'

# Database
# Postgres in production (DATABASE_URL=postgres://...), SQLite for local work.
DATABASES = {
    'default': env.db('DATABASE_URL', default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# Internationalization
LANGUAGE_CODE = 'de'
TIME_ZONE = 'Europe/Rome'
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# REST FRAMEWORK
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    # Back-office by default; public endpoints opt out with AllowAny.
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAdminUser',
    ],
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
    ],
}

# EMAIL
# Used when no active EmailSettings row exists in the database.
EMAIL_BACKEND = env('EMAIL_BACKEND', default='django.core.mail.backends.smtp.EmailBackend')
EMAIL_HOST = env('EMAIL_HOST', default='localhost')
EMAIL_PORT = env.int('EMAIL_PORT', default=587)
EMAIL_HOST_USER = env('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = env('EMAIL_HOST_PASSWORD', default='')
EMAIL_USE_TLS = env.bool('EMAIL_USE_TLS', default=True)
DEFAULT_FROM_EMAIL = env('DEFAULT_FROM_EMAIL', default='Casa di Barbara <info@casadibarbara.com>')

# CELERY SETTINGS
CELERY_BROKER_URL = env('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = env('CELERY_RESULT_BACKEND', default='redis://localhost:6379/0')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    'cancel-expired-pending-bookings': {
        'task': 'reservations.tasks.cancel_expired_pending_bookings_task',
        'schedule': crontab(hour=3, minute=0),
    },
}

# BOOKINGS
# Pending bookings with an unpaid deposit past its due date are only cancelled
# automatically when this is switched on.
AUTO_CANCEL_UNPAID_BOOKINGS = env('AUTO_CANCEL_UNPAID_BOOKINGS')

# LOGGING
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': env('DJANGO_LOG_LEVEL', default='INFO'),
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': env('DJANGO_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
    },
}

# JAZZMIN SETTINGS
JAZZMIN_SETTINGS = {
    "site_title": "Casa di Barbara Verwaltung",
    "site_header": "Casa di Barbara",
    "site_brand": "Casa di Barbara",
    "welcome_sign": "Willkommen in der Verwaltung",
    "copyright": "Casa di Barbara",
    "search_model": ["reservations.Booking", "reservations.Guest"],

    "topmenu_links": [
        {"name": "Start", "url": "admin:index", "permissions": ["auth.view_user"]},
        {"name": "Website", "url": "/", "new_window": True},
    ],

    "order_with_respect_to": [
        "reservations",
        "pricing",
        "notifications",
        "content",
        "core",
    ],

    "icons": {
        "auth": "fas fa-users-cog",
        "auth.user": "fas fa-user",
        "auth.Group": "fas fa-users",
        "reservations.Booking": "fas fa-concierge-bell",
        "reservations.Guest": "fas fa-address-book",
        "reservations.BlockedDate": "fas fa-calendar-times",
        "pricing.PricingPeriod": "fas fa-calendar-alt",
        "pricing.Fee": "fas fa-tags",
        "pricing.Discount": "fas fa-percent",
        "pricing.PaymentSettings": "fas fa-file-invoice-dollar",
        "notifications.EmailTemplate": "fas fa-envelope-open-text",
        "content.BlogPost": "fas fa-newspaper",
        "content.Event": "fas fa-calendar-day",
        "content.Message": "fas fa-comments",
    },

    "default_icon_parents": "fas fa-chevron-circle-right",
    "default_icon_children": "fas fa-circle",
    "related_modal_active": True,
    "show_ui_builder": False,
}

JAZZMIN_UI_TWEAKS = {
    "theme": "flatly",
}
