DOMAIN = "octopus_germany"

CONF_EMAIL = "email"
CONF_PASSWORD = "password"
CONF_ACCOUNT_NUMBER = "account_number"

# Option keys
OPT_SCAN_INTERVAL = "scan_interval"
OPT_API_TIMEOUT = "api_timeout"
OPT_LOG_API_RESPONSES = "log_api_responses"
OPT_LOG_TOKEN_RESPONSES = "log_token_responses"

DEFAULT_SCAN_INTERVAL = 300
MIN_SCAN_INTERVAL = 60
DEFAULT_API_TIMEOUT = 30

GRAPHQL_ENDPOINT = "https://api.oeg-kraken.energy/v1/graphql/"

# Kraken error codes (extensions.errorCode)
ERROR_CODE_RATE_LIMITED = "KT-CT-1199"
ERROR_CODE_TOKEN_EXPIRED = "KT-CT-1124"
ERROR_CODE_NOT_FOUND_FOR_ACCOUNT = "KT-CT-4301"

# Top-level fields an account may legitimately lack
OPTIONAL_SECTIONS = ("devices", "plannedDispatches", "completedDispatches")

# Token lifecycle (seconds)
TOKEN_REFRESH_MARGIN = 300
TOKEN_AUTO_REFRESH_INTERVAL = 3600

# Retry policy
BACKOFF_INITIAL_DELAY = 1.0
BACKOFF_MAX_DELAY = 30.0
DEFAULT_MAX_RETRIES = 3
LOGIN_MAX_RETRIES = 5

# Cache namespaces and their TTLs (seconds)
CACHE_KEY_ACCOUNT = "account"
CACHE_KEY_DEVICES = "devices"
CACHE_KEY_DISPATCHES = "dispatches"
CACHE_TTLS = {
    CACHE_KEY_ACCOUNT: 3600,
    CACHE_KEY_DEVICES: 300,
    CACHE_KEY_DISPATCHES: 60,
}

DEVICE_ACTION_SUSPEND = "SUSPEND"
DEVICE_ACTION_UNSUSPEND = "UNSUSPEND"
DEVICE_ACTIONS = (DEVICE_ACTION_SUSPEND, DEVICE_ACTION_UNSUSPEND)
