"""
Settings for the clinic API.

Everything configurable comes from the environment.  A ``.env`` file at the
project root is read first when it exists, which is convenient locally;
deployments should export real variables.
"""
from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

import dj_database_url
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

_dotenv = BASE_DIR / ".env"
if _dotenv.exists():
    load_dotenv(dotenv_path=_dotenv)


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _csv(name: str, default: str = "") -> list[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


PLACEHOLDER_SECRET = "hms-insecure-development-key-change-me"

ENV = os.getenv("ENV", "dev")
DEBUG = _flag("DEBUG")
SECRET_KEY = os.getenv("SECRET_KEY") or PLACEHOLDER_SECRET
ALLOWED_HOSTS = _csv("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver")

if ENV == "prod":
    if DEBUG:
        raise RuntimeError("DEBUG must be off when ENV=prod")
    if "*" in ALLOWED_HOSTS:
        raise RuntimeError("ALLOWED_HOSTS may not contain '*' when ENV=prod")
    if SECRET_KEY == PLACEHOLDER_SECRET:
        raise RuntimeError("SECRET_KEY is not set")

# -----------------------------------------------------------------------------
# Apps and request pipeline
# -----------------------------------------------------------------------------
INSTALLED_APPS = [
    "django_prometheus",
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt.token_blacklist",
    "drf_yasg",
    "clinic",
]

MIDDLEWARE = [
    # prometheus Before/After must wrap everything else
    "django_prometheus.middleware.PrometheusBeforeMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",
]

ROOT_URLCONF = "hms.urls"
WSGI_APPLICATION = "hms.wsgi.application"
ASGI_APPLICATION = "hms.asgi.application"

# only the Django admin and the API docs render templates
TEMPLATES = [{
    "BACKEND": "django.template.backends.django.DjangoTemplates",
    "APP_DIRS": True,
    "OPTIONS": {
        "context_processors": [
            "django.template.context_processors.request",
            "django.contrib.auth.context_processors.auth",
            "django.contrib.messages.context_processors.messages",
        ],
    },
}]


# -----------------------------------------------------------------------------
# Database: MySQL from discrete vars, else DATABASE_URL, else local SQLite
# -----------------------------------------------------------------------------
def _database(conn_max_age: int) -> dict:
    name = os.getenv("MYSQL_NAME") or os.getenv("DB_NAME")
    user = os.getenv("MYSQL_USER") or os.getenv("DB_USER")
    if name and user:
        return {
            "ENGINE": "django.db.backends.mysql",
            "NAME": name,
            "USER": user,
            "PASSWORD": os.getenv("MYSQL_PASSWORD") or os.getenv("DB_PASSWORD") or "",
            "HOST": os.getenv("MYSQL_HOST") or os.getenv("DB_HOST", "localhost"),
            "PORT": os.getenv("MYSQL_PORT") or os.getenv("DB_PORT", "3306"),
            "CONN_MAX_AGE": conn_max_age,
            "OPTIONS": {"charset": "utf8mb4", "init_command": "SET sql_mode='STRICT_TRANS_TABLES'"},
        }
    url = os.getenv("DATABASE_URL", "").strip()
    if url:
        return dj_database_url.parse(url, conn_max_age=conn_max_age)
    return {"ENGINE": "django.db.backends.sqlite3", "NAME": (BASE_DIR / "hms.sqlite3").as_posix()}


DATABASES = {"default": _database(int(os.getenv("DB_CONN_MAX_AGE", "120")))}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------------------------------------------
# Accounts
# -----------------------------------------------------------------------------
AUTH_USER_MODEL = "clinic.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": f"django.contrib.auth.password_validation.{v}"}
    for v in (
        "UserAttributeSimilarityValidator",
        "MinimumLengthValidator",
        "CommonPasswordValidator",
        "NumericPasswordValidator",
    )
]

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.getenv("JWT_ACCESS_MINUTES", "60"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.getenv("JWT_REFRESH_DAYS", "7"))),
    "AUTH_HEADER_TYPES": ("Bearer",),
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
}

# login stores the token pair in these HTTP-only cookies
AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "hms_access")
AUTH_REFRESH_COOKIE_NAME = os.getenv("AUTH_REFRESH_COOKIE_NAME", "hms_refresh")
AUTH_COOKIE_SECURE = ENV == "prod" or _flag("AUTH_COOKIE_SECURE")
AUTH_COOKIE_SAMESITE = os.getenv("AUTH_COOKIE_SAMESITE", "Lax")

# -----------------------------------------------------------------------------
# API
# -----------------------------------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": ["clinic.authentication.CookieJWTAuthentication"],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
    ],
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": os.getenv("THROTTLE_ANON", "60/min"),
        "user": os.getenv("THROTTLE_USER", "240/min"),
        "login": os.getenv("THROTTLE_LOGIN", "10/min"),
        "register": os.getenv("THROTTLE_REGISTER", "20/hour"),
    },
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "clinic.exceptions.api_exception_handler",
}

AUDIT_LOGGER_CLASS = os.getenv("AUDIT_LOGGER_CLASS", "clinic.services.audit.DatabaseAuditLogger")
API_LIST_LIMIT = int(os.getenv("API_LIST_LIMIT", "100"))
APPEND_SLASH = False

SWAGGER_SETTINGS = {
    "DEFAULT_INFO": "hms.urls.api_info",
    "SECURITY_DEFINITIONS": {"Bearer": {"type": "apiKey", "name": "Authorization", "in": "header"}},
}

# no cross-origin access unless origins are listed
CORS_ALLOWED_ORIGINS = _csv("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
# cookie-authenticated writes carry X-CSRFToken; list the front-end origins here
CSRF_TRUSTED_ORIGINS = _csv("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------------------------------------------
# Static files, locale
# -----------------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = False
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}


# -----------------------------------------------------------------------------
# Cache: throttle counters.  Shared Redis when REDIS_URL is set.
# -----------------------------------------------------------------------------
def _cache(redis_url: str) -> dict:
    if not redis_url:
        return {"BACKEND": "django.core.cache.backends.locmem.LocMemCache", "LOCATION": "hms"}
    return {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": redis_url,
        "KEY_PREFIX": "hms",
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            "CONNECTION_POOL_KWARGS": {"max_connections": int(os.getenv("REDIS_MAX_CONN", "50"))},
            "SOCKET_CONNECT_TIMEOUT": 3,
            "SOCKET_TIMEOUT": 3,
        },
    }


CACHES = {"default": _cache(os.getenv("REDIS_URL", ""))}

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "{asctime} {levelname} [{name}] {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"handlers": ["console"], "level": os.getenv("DJANGO_LOG_LEVEL", "INFO"), "propagate": False},
        "clinic": {"handlers": ["console"], "level": "DEBUG" if DEBUG else LOG_LEVEL, "propagate": False},
    },
}

# -----------------------------------------------------------------------------
# TLS behind a reverse proxy
# -----------------------------------------------------------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = True

if ENV == "prod":
    SECURE_SSL_REDIRECT = _flag("SECURE_SSL_REDIRECT", "1")
    SECURE_HSTS_SECONDS = int(os.getenv("SECURE_HSTS_SECONDS", "3600"))
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
