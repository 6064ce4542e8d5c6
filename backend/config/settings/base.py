import os
from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parents[2]

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ['localhost', '127.0.0.1']),
    CORS_ALLOW_ALL_ORIGINS=(bool, False),
    API_THROTTLE_SCAN=(str, '30/minute'),
    API_THROTTLE_GENERATE=(str, '20/minute'),
    API_THROTTLE_AUTH=(str, '20/minute'),
    API_THROTTLE_WEBHOOK=(str, '600/minute'),
    API_THROTTLE_DEFAULT=(str, '180/minute'),
)

environ.Env.read_env(os.path.join(BASE_DIR, '.env'))

SECRET_KEY = env('DJANGO_SECRET_KEY', default='django-insecure-change-me')
DEBUG = env('DEBUG')
ALLOWED_HOSTS = env.list('ALLOWED_HOSTS')
APP_VERSION = env('APP_VERSION', default='0.1.0')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'corsheaders',
    'rest_framework',
    'complykit',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

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

WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

DATABASES = {
    'default': env.db_url(
        'DATABASE_URL',
        default='sqlite:///db.sqlite3',
    ),
}

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_THROTTLE_CLASSES': [
        'complykit.throttles.ComplyKitScopedRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'scan': env('API_THROTTLE_SCAN'),
        'generate': env('API_THROTTLE_GENERATE'),
        'auth': env('API_THROTTLE_AUTH'),
        'webhook': env('API_THROTTLE_WEBHOOK'),
        'default': env('API_THROTTLE_DEFAULT'),
    },
    'UNAUTHENTICATED_USER': None,
}
API_DISABLE_THROTTLING = env.bool('API_DISABLE_THROTTLING', default=False)

CORS_ALLOW_ALL_ORIGINS = env('CORS_ALLOW_ALL_ORIGINS')
CORS_ALLOWED_ORIGINS = env.list('CORS_ALLOWED_ORIGINS', default=[])
CSRF_TRUSTED_ORIGINS = env.list('CSRF_TRUSTED_ORIGINS', default=[])

DATA_UPLOAD_MAX_MEMORY_SIZE = env.int('DATA_UPLOAD_MAX_MEMORY_SIZE', default=1048576)
FILE_UPLOAD_MAX_MEMORY_SIZE = env.int('FILE_UPLOAD_MAX_MEMORY_SIZE', default=1048576)

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = 'strict-origin-when-cross-origin'
X_FRAME_OPTIONS = 'DENY'
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = 'Lax'
CSRF_COOKIE_SAMESITE = 'Lax'

# Bearer tokens
API_ACCESS_TOKEN_EXPIRES_SECONDS = env.int('API_ACCESS_TOKEN_EXPIRES_SECONDS', default=86400)

# Scanner
SCAN_TIMEOUT_SECONDS = env.float('SCAN_TIMEOUT_SECONDS', default=15.0)
SCAN_MAX_REDIRECTS = env.int('SCAN_MAX_REDIRECTS', default=5)
SCAN_MAX_BODY_BYTES = env.int('SCAN_MAX_BODY_BYTES', default=2_000_000)
SCAN_PROBE_LINKED_PAGES = env.bool('SCAN_PROBE_LINKED_PAGES', default=True)
SCAN_CACHE_TTL_HOURS = env.int('SCAN_CACHE_TTL_HOURS', default=24)
SCAN_MAX_CONCURRENCY = env.int('SCAN_MAX_CONCURRENCY', default=4)
SCAN_JURISDICTION_CLASSIFIER = env(
    'SCAN_JURISDICTION_CLASSIFIER',
    default='complykit.scan_engine.jurisdiction.infer_jurisdiction',
)
SCAN_JURISDICTION_MIN_CONFIDENCE = env.float('SCAN_JURISDICTION_MIN_CONFIDENCE', default=0.5)
SCAN_USER_AGENT = env('SCAN_USER_AGENT', default='ComplyKitScanner/1.0 (+https://complykit.local)')

# Entitlements
FULL_COMPLIANCE_CREDIT_GRANT = env.int('FULL_COMPLIANCE_CREDIT_GRANT', default=15)
ANNUAL_GUARD_DURATION_DAYS = env.int('ANNUAL_GUARD_DURATION_DAYS', default=365)
PRO_PLAN_DURATION_DAYS = env.int('PRO_PLAN_DURATION_DAYS', default=31)
LEDGER_LOCK_RETRIES = env.int('LEDGER_LOCK_RETRIES', default=5)

# Document generation
DOCUMENT_GENERATION_BACKEND = env(
    'DOCUMENT_GENERATION_BACKEND',
    default='complykit.documents.backends.default_backend',
)
DOCUMENT_GENERATION_TIMEOUT_SECONDS = env.float('DOCUMENT_GENERATION_TIMEOUT_SECONDS', default=90.0)
DOCUMENT_GENERATION_MAX_RETRIES = env.int('DOCUMENT_GENERATION_MAX_RETRIES', default=1)
DOCUMENT_TEMPLATE_DIR = env('DOCUMENT_TEMPLATE_DIR', default='')
OPENAI_API_KEY = env('OPENAI_API_KEY', default='')
OPENAI_MODEL = env('OPENAI_MODEL', default='gpt-4o-mini')
OPENAI_BASE_URL = env('OPENAI_BASE_URL', default='https://api.openai.com/v1')

# Payments
STRIPE_SECRET_KEY = env('STRIPE_SECRET_KEY', default='')
STRIPE_WEBHOOK_SECRET = env('STRIPE_WEBHOOK_SECRET', default='')
STRIPE_API_BASE = env('STRIPE_API_BASE', default='https://api.stripe.com/v1')
STRIPE_TIMEOUT_SECONDS = env.float('STRIPE_TIMEOUT_SECONDS', default=10.0)
STRIPE_WEBHOOK_TOLERANCE_SECONDS = env.int('STRIPE_WEBHOOK_TOLERANCE_SECONDS', default=300)
CHECKOUT_DEFAULT_SUCCESS_URL = env('CHECKOUT_DEFAULT_SUCCESS_URL', default='http://localhost:8080/dashboard')
CHECKOUT_DEFAULT_CANCEL_URL = env('CHECKOUT_DEFAULT_CANCEL_URL', default='http://localhost:8080/pricing')

# PDF export
PDF_RENDER_URL = env('PDF_RENDER_URL', default='')
PDF_RENDER_TIMEOUT_SECONDS = env.float('PDF_RENDER_TIMEOUT_SECONDS', default=20.0)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': env('LOG_LEVEL', default='INFO'),
    },
}
