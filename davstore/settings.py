import json
import os
import sys
import uuid

DEBUG = False

USE_TZ = True

INSTALLED_APPS = [
    'davstore',
]

ROOT_URLCONF = 'davstore.urls'

ALLOWED_HOSTS = os.environ.get("DAVSTORE_ALLOWED_HOSTS", "localhost").split(",")

# Storage backend served by davstore.views. Same format as the storage
# settings files the command line takes:
# {"class": "webdav", "settings": {"url": ..., "base_path": ...}}
DAVSTORE_STORAGE = None
if os.environ.get("DAVSTORE_STORAGE_FILE"):
    with open(os.environ["DAVSTORE_STORAGE_FILE"], encoding="utf-8") as f:
        DAVSTORE_STORAGE = json.load(f)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "color": {
            "()": "colorlog.ColoredFormatter",
            "format": "%(log_color)s%(levelname)-8s%(reset)s "
                      "%(message)s",
            "log_colors": {"DEBUG": "cyan", "INFO": "white",
                           "WARNING": "yellow", "ERROR": "red",
                           "CRITICAL": "white,bg_red",
                           },
        },
        "nocolor": {
            "format": "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "color" if sys.stderr.isatty() else "nocolor",
        },
    },
    "loggers": {
        "davstore": {
            "level": "WARNING",
        },
        "django": {
            "handlers": [],
        }
    },
    "root": {
        "level": "WARNING",
        "handlers": ["stderr"],
    }

}

# Set a secret key for this session
SECRET_KEY = os.environ.get("DAVSTORE_SECRET_KEY") or str(uuid.uuid4())
