# threadart_project/settings.py

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'threadart-insecure-dev-key')
DEBUG = os.environ.get('DJANGO_DEBUG', '1') == '1'
ALLOWED_HOSTS = ['localhost', '127.0.0.1', 'testserver']

INSTALLED_APPS = [
    'threadart_app',
]

MIDDLEWARE = [
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'threadart_project.urls'
WSGI_APPLICATION = 'threadart_project.wsgi.application'

# No models; results live in memory for the lifetime of the process.
DATABASES = {}

# Uploaded images are read whole into memory.
DATA_UPLOAD_MAX_MEMORY_SIZE = 20 * 1024 * 1024

# === threadart ===
# Side length of the square darkness field every job searches on.
THREADART_FIELD_SIZE = 500
# Selection steps per chunk between cancellation checks.
THREADART_CHUNK_SIZE = 100
# Seconds a finished run stays available over HTTP before it is forgotten.
THREADART_RUN_RETENTION = 600

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)s %(name)s %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'},
    },
    'loggers': {
        'threadart_app': {'handlers': ['console'], 'level': 'INFO'},
    },
}
