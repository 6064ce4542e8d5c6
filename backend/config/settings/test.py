from .base import *  # noqa: F401,F403

DEBUG = False
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
SECURE_HSTS_SECONDS = 0
SECURE_HSTS_INCLUDE_SUBDOMAINS = False
SECURE_HSTS_PRELOAD = False
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]
API_DISABLE_THROTTLING = True

# Keep tests isolated from external providers.
OPENAI_API_KEY = ''
STRIPE_SECRET_KEY = ''
STRIPE_WEBHOOK_SECRET = 'whsec_test_secret'
PDF_RENDER_URL = ''
DOCUMENT_TEMPLATE_DIR = ''
DOCUMENT_GENERATION_BACKEND = 'complykit.documents.backends.default_backend'
SCAN_PROBE_LINKED_PAGES = True
SCAN_CACHE_TTL_HOURS = 24
FULL_COMPLIANCE_CREDIT_GRANT = 15
