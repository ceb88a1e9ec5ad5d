SECRET_KEY = "not-a-secret"

DEBUG = True

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django_ai_knowledge.contrib.knowledge",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True

# Fast hashing for tests
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

AI_KNOWLEDGE = {
    "EMBEDDING_PROVIDER": "openai",
    "EMBEDDING_BASE_URL": "https://embeddings.example.com/v1",
    "EMBEDDING_MODEL": "text-embedding-3-small",
    "EMBEDDING_DIMENSIONS": 3,
    "STORAGE": {
        "BACKEND": "django_ai_knowledge.contrib.knowledge.storage.inmemory.InMemoryProvider",
        "OPTIONS": {},
    },
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"console": {"class": "logging.StreamHandler"}},
    "loggers": {
        "django_ai_knowledge": {"handlers": ["console"], "level": "WARNING"},
    },
}
