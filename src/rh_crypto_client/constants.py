"""
Constants for the crypto trading client.
"""

# API Configuration
DEFAULT_BASE_URL = "https://trading.robinhood.com"
DEFAULT_TIMEOUT_MS = 10000
DEFAULT_USER_AGENT = "rh-crypto-client/1.0"

# Rate Limiting Configuration
DEFAULT_MAX_REQUESTS = 100
DEFAULT_WINDOW_MS = 60000  # 1 minute
DEFAULT_BURST_CAPACITY = 300
FALLBACK_BUCKET_CAPACITY = 100

# Retry Configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_MAX_RETRY_DELAY_MS = 30000

# Authentication Configuration
ED25519_SEED_LENGTH = 32
SIGNATURE_MAX_AGE_SECONDS = 30
API_KEY_HEADER = "x-api-key"
SIGNATURE_HEADER = "x-signature"
TIMESTAMP_HEADER = "x-timestamp"
REQUEST_ID_HEADER = "x-request-id"
RETRY_AFTER_HEADER = "retry-after"

# Environment variables
ENV_API_KEY = "RH_CRYPTO_API_KEY"
ENV_SECRET_KEY = "RH_CRYPTO_SECRET_KEY"
ENV_BASE_URL = "RH_CRYPTO_BASE_URL"
ENV_TIMEOUT_MS = "RH_CRYPTO_TIMEOUT_MS"
ENV_DEBUG = "RH_CRYPTO_DEBUG"

# HTTP Status Codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_TOO_MANY_REQUESTS = 429

# API paths
ACCOUNTS_PATH = "/api/v1/crypto/trading/accounts/"
TRADING_PAIRS_PATH = "/api/v1/crypto/trading/trading_pairs/"
HOLDINGS_PATH = "/api/v1/crypto/trading/holdings/"
ORDERS_PATH = "/api/v1/crypto/trading/orders/"
BEST_BID_ASK_PATH = "/api/v1/crypto/marketdata/best_bid_ask/"
ESTIMATED_PRICE_PATH = "/api/v1/crypto/marketdata/estimated_price/"

# Trading
ORDER_SIDES = ("buy", "sell")
ORDER_TYPES = ("market", "limit", "stop_loss", "stop_limit")
TIME_IN_FORCE_VALUES = ("gtc", "ioc", "fok")
DEFAULT_TIME_IN_FORCE = "gtc"
ESTIMATE_SIDES = ("bid", "ask", "both")
MAX_ESTIMATE_QUANTITIES = 10
CASH_ASSET_CODES = ("USD", "USDC", "USDT")
