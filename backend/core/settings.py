import os
from datetime import timedelta
from pathlib import Path

import dj_database_url
from celery.schedules import crontab
from dotenv import load_dotenv

# Load environment variables from a .env file if present (useful for local dev)
load_dotenv()


def env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def env_list(name: str, default: str = "") -> list[str]:
    raw = os.getenv(name, default) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-placeholder-key')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env_bool('DJANGO_DEBUG', 'true')

ALLOWED_HOSTS = env_list('DJANGO_ALLOWED_HOSTS', '*')


# Application definition

INSTALLED_APPS = [
    'jazzmin',
    'shared',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'drf_spectacular',
    'corsheaders',
    'rest_framework_simplejwt',
]

LOCAL_APPS = [
    'apps.users',
    'apps.audit',
    'apps.notifications',
    'apps.procurement',
    'apps.inventory.apps.InventoryConfig',
    'apps.fleet',
    'apps.hr',
    'apps.safety',
    'apps.finance',
    'apps.tasks.apps.TasksConfig',
    'apps.documents',
    'apps.approvals',
    'apps.mobile',
]

INSTALLED_APPS += LOCAL_APPS

JAZZMIN_SETTINGS = {
    "site_title": "Mining ERP Admin",
    "site_header": "Mining ERP",
    "site_brand": "Mining ERP",
    "welcome_sign": "Welcome to Mining ERP Administration",
    "search_model": ["users.User", "procurement.Vendor", "procurement.PurchaseOrder"],
    "topmenu_links": [
        {"name": "Home", "url": "admin:index", "permissions": ["auth.view_user"]},
        {"model": "users.User"},
    ],
    "show_sidebar": True,
    "navigation_expanded": False,
    "order_with_respect_to": [
        "users",
        "procurement",
        "inventory",
        "fleet",
        "finance",
        "hr",
        "safety",
        "documents",
        "tasks",
    ],
    "icons": {
        "auth": "fas fa-users-cog",
        "users.user": "fas fa-user",
        "procurement": "fas fa-truck",
        "procurement.vendor": "fas fa-shipping-fast",
        "procurement.purchaseorder": "fas fa-file-invoice",
        "procurement.goodsreceipt": "fas fa-dolly",
        "procurement.vendorinvoice": "fas fa-file-invoice-dollar",
        "procurement.vendorpayment": "fas fa-money-bill-wave",
        "inventory": "fas fa-warehouse",
        "inventory.stockitem": "fas fa-box-open",
        "inventory.stockmovement": "fas fa-exchange-alt",
        "fleet": "fas fa-truck-monster",
        "finance": "fas fa-dollar-sign",
        "hr": "fas fa-user-friends",
        "hr.leaverequest": "fas fa-calendar-times",
        "safety": "fas fa-hard-hat",
        "documents": "fas fa-folder-open",
        "tasks": "fas fa-check-square",
        "notifications": "fas fa-bell",
        "audit": "fas fa-history",
        "mobile": "fas fa-mobile-alt",
    },
    "default_icon_parents": "fas fa-chevron-circle-right",
    "default_icon_children": "fas fa-circle",
    "related_modal_active": False,
    "show_ui_builder": False,
    "changeform_format": "horizontal_tabs",
    "changeform_format_overrides": {"auth.user": "collapsible", "auth.group": "vertical_tabs"},
}

JAZZMIN_UI_TWEAKS = {
    "navbar": "navbar-dark navbar-primary",
    "no_navbar_border": True,
    "navbar_fixed": True,
    "sidebar_fixed": True,
    "sidebar": "sidebar-dark-primary",
    "sidebar_nav_child_indent": True,
    "sidebar_nav_compact_style": True,
    "sidebar_nav_flat_style": True,
    "theme": "flatly",
    "dark_mode_theme": "darkly",
}

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'core.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'core.wsgi.application'


# Database
# DATABASE_URL selects the backend (PostgreSQL in deployments); a local SQLite
# file is used when it is not set.

DATABASES = {
    'default': dj_database_url.config(
        default=f"sqlite:///{(BASE_DIR / 'db.sqlite3').resolve()}",
        conn_max_age=env_int('DB_CONN_MAX_AGE', 0),
    )
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


# Internationalization

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

MEDIA_ROOT = os.path.join(BASE_DIR, 'media')
MEDIA_URL = '/media/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_USER_MODEL = 'users.User'

# Redis settings
REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = env_int('REDIS_PORT', 6379)
REDIS_DB = env_int('REDIS_DB', 0)

# Celery Configuration
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', f'redis://{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', f'redis://{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TASK_DEFAULT_QUEUE = 'default'
CELERY_TASK_ALWAYS_EAGER = env_bool('CELERY_TASK_ALWAYS_EAGER', 'false')
CELERY_TASK_ROUTES = {
    'apps.documents.tasks.*': {'queue': 'webhooks'},
}
CELERY_BEAT_SCHEDULE = {
    'fleet-expiring-documents': {
        'task': 'apps.fleet.tasks.check_expiring_documents',
        'schedule': crontab(hour=6, minute=0),  # Daily at 6 AM
    },
    'hr-leave-reminders': {
        'task': 'apps.hr.tasks.send_leave_reminders',
        'schedule': crontab(hour=8, minute=0),
    },
    'tasks-overdue-check': {
        'task': 'apps.tasks.check_overdue_tasks',
        'schedule': crontab(minute=0),  # hourly
    },
}

# DRF & Schema
REST_FRAMEWORK = {
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    # Prefer JWT first to avoid unintended CSRF enforcement via SessionAuthentication
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
    'EXCEPTION_HANDLER': 'shared.exceptions.domain_exception_handler',
    'COERCE_DECIMAL_TO_STRING': True,
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=env_int('JWT_ACCESS_MINUTES', 60)),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=env_int('JWT_REFRESH_DAYS', 7)),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Mining ERP API',
    'DESCRIPTION': 'Procurement, inventory, fleet, HR, safety, finance, documents and mobile endpoints.',
    'VERSION': '1.0.0',
}

CORS_ALLOW_ALL_ORIGINS = env_bool('CORS_ALLOW_ALL_ORIGINS', 'false')
CORS_ALLOWED_ORIGINS = env_list('CORS_ALLOWED_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173')
CORS_ALLOW_CREDENTIALS = True
CSRF_TRUSTED_ORIGINS = env_list('CSRF_TRUSTED_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173')

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s',
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
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'WARNING', 'propagate': False},
        'apps': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'shared': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}

# Domain configuration
DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'GHS')

PROCUREMENT_MATCH_TOLERANCE_PERCENT = env_float('PROCUREMENT_MATCH_TOLERANCE_PERCENT', 2.0)
PROCUREMENT_DUE_PAYMENTS_DEFAULT_DAYS = env_int('PROCUREMENT_DUE_PAYMENTS_DEFAULT_DAYS', 30)

OCR_WEBHOOK = {
    'URLS': env_list('OCR_WEBHOOK_URLS'),
    'SECRET': os.getenv('OCR_WEBHOOK_SECRET', ''),
    'TIMEOUT_SECONDS': env_float('OCR_WEBHOOK_TIMEOUT_SECONDS', 10.0),
    'USER_AGENT': 'Mining-ERP-OCR-Webhook/1.0',
}

# Raw values are validated by apps.mobile.services; malformed entries fall back to defaults.
MOBILE_CONFIG = {
    'MIN_VERSION_IOS': os.getenv('MOBILE_MIN_VERSION_IOS', ''),
    'MIN_VERSION_ANDROID': os.getenv('MOBILE_MIN_VERSION_ANDROID', ''),
    'APP_STORE_URL': os.getenv('MOBILE_APP_STORE_URL', ''),
    'PLAY_STORE_URL': os.getenv('MOBILE_PLAY_STORE_URL', ''),
    'FEATURE_FLAGS': os.getenv('MOBILE_FEATURE_FLAGS', ''),
}

DOCUMENT_NUMBER_WIDTH = env_int('DOCUMENT_NUMBER_WIDTH', 5)
