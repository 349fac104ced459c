"""
Central place for wrapper-wide constants.
Keep this module dependency-free to avoid circular imports.
"""

# --- Connection ---------------------------------------------------------------

URI_SCHEME = "mongodb+srv://"

# Suffix used when secrets only give a cluster host
CLUSTER_URL_SUFFIX = "@{cluster_url}/?retryWrites=true&w=majority"

CONNECT_TIMEOUT_SECONDS: float = 10.0

# --- Retry policy -------------------------------------------------------------

DEFAULT_RETRIES: int = 1
DEFAULT_RETRY_BACKOFF_SECONDS: float = 0.0

# --- Messages -----------------------------------------------------------------

NO_DATABASE_MSG = "please set a database before setting a collection"
NO_COLLECTION_MSG = "please set a collection before running queries"
NOT_CONNECTED_MSG = "please connect before selecting a database"

# --- Secrets keys -------------------------------------------------------------

SECRET_USERNAME = "mongo_username"
SECRET_PASSWORD = "mongo_password"
SECRET_URL_SUFFIX = "mongo_url_suffix"
SECRET_CLUSTER_URL = "mongo_cluster_url"
SECRET_DATABASE = "database_name"
SECRET_COLLECTION = "collection_name"
SECRET_CONNECT_TIMEOUT = "mongo_connect_timeout"
SECRET_RETRIES = "mongo_retries"
SECRET_RETRY_BACKOFF = "mongo_retry_backoff"
