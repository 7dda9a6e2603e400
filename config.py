import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./recovery.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = data.get("API_RELOAD", False)
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Password reset
    RESET_TOKEN_TTL_MINUTES = data.get("RESET_TOKEN_TTL_MINUTES", 30)
    RESET_RATE_LIMIT_SECONDS = data.get("RESET_RATE_LIMIT_SECONDS", 300)
    SECURITY_QUESTION_MAX_ATTEMPTS = data.get("SECURITY_QUESTION_MAX_ATTEMPTS", 3)
    RESET_TOKEN_RETENTION_HOURS = data.get("RESET_TOKEN_RETENTION_HOURS", 24)
    # Latency floor of forgot-password. Reset links are mailed inside the
    # request, so with EMAIL_BACKEND=smtp the floor has to cover the relay
    # round-trip or timing tells known accounts apart. Unset: 250 ms for
    # "log", 2000 ms for "smtp".
    RESET_MIN_RESPONSE_MS = data.get("RESET_MIN_RESPONSE_MS")
    ALLOWED_EMAIL_DOMAINS = data.get("ALLOWED_EMAIL_DOMAINS", ["gamc.gov.bo"])
    RESET_LINK_BASE_URL = data.get(
        "RESET_LINK_BASE_URL", "http://localhost:3000/reset-password"
    )
    SWEEPER_INTERVAL_SECONDS = data.get("SWEEPER_INTERVAL_SECONDS", 300)

    # Outbound email
    EMAIL_BACKEND = data.get("EMAIL_BACKEND", "log")
    SMTP_HOST = data.get("SMTP_HOST", "localhost")
    SMTP_PORT = data.get("SMTP_PORT", 587)
    SMTP_USERNAME = data.get("SMTP_USERNAME", "")
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", "")
    SMTP_USE_TLS = bool(data.get("SMTP_USE_TLS", True))
    SMTP_FROM = data.get("SMTP_FROM", "no-reply@gamc.gov.bo")
    DOWNSTREAM_TIMEOUT_SECONDS = data.get("DOWNSTREAM_TIMEOUT_SECONDS", 30)
