import os

from dotenv import load_dotenv

# Loads .env from the project root
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./backoffice.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DB_ECHO = os.getenv("DB_ECHO", "").strip().lower() in {"1", "true", "yes", "on"}
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))

# Address book
DEFAULT_ADDRESS_COUNTRY = os.getenv("DEFAULT_ADDRESS_COUNTRY", "USA").strip() or "USA"

# Tenant resolution
TENANT_HEADER = os.getenv("TENANT_HEADER", "X-Tenant-ID").strip() or "X-Tenant-ID"

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
