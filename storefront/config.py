import os


def _bool(value: str | None) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")


_database = os.getenv('POSTGRES_DB')
_user = os.getenv('POSTGRES_USER')
_password = os.getenv('POSTGRES_PASSWORD')
_host = os.getenv('POSTGRES_HOST', 'localhost')
_port = os.getenv('POSTGRES_PORT', '5432')

DATABASE_URL = os.getenv(
    'DATABASE_URL',
    f'postgresql://{_user}:{_password}@{_host}:{_port}/{_database}',
)

# Connection pool
DB_POOL_SIZE = int(os.getenv('DB_POOL_SIZE', '20'))
DB_MAX_OVERFLOW = int(os.getenv('DB_MAX_OVERFLOW', '0'))
DB_POOL_TIMEOUT = float(os.getenv('DB_POOL_TIMEOUT', '2'))
DB_POOL_RECYCLE = int(os.getenv('DB_POOL_RECYCLE', '1800'))
DB_ECHO = _bool(os.getenv('DB_ECHO'))

# HTTP
GZIP_MINIMUM_SIZE = int(os.getenv('GZIP_MINIMUM_SIZE', '1000'))
CORS_ALLOW_ORIGINS = [
    origin.strip() for origin in os.getenv('CORS_ALLOW_ORIGINS', '*').split(',') if origin.strip()
]

# Credentials
ADMIN_API_KEY = os.getenv('ADMIN_API_KEY')
CUSTOMER_TOKEN_SECRET = os.getenv('CUSTOMER_TOKEN_SECRET')
WEBHOOK_SECRET = os.getenv('WEBHOOK_SECRET')
SIGNATURE_TOLERANCE_SECONDS = int(os.getenv('SIGNATURE_TOLERANCE_SECONDS', '300'))

# Orders
DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'ARS')
ORDERS_DEFAULT_LIMIT = int(os.getenv('ORDERS_DEFAULT_LIMIT', '50'))
ORDERS_MAX_LIMIT = int(os.getenv('ORDERS_MAX_LIMIT', '100'))
ORDERS_MAX_OFFSET = int(os.getenv('ORDERS_MAX_OFFSET', '10000'))
ORDER_ITEM_MAX_QUANTITY = int(os.getenv('ORDER_ITEM_MAX_QUANTITY', '10000'))

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_DIR = os.getenv('LOG_DIR', '')
