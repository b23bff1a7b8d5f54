"""Wire-level constants of the Cloud Files storage API."""

# Authentication
X_AUTH_USER = "X-Auth-User"
X_AUTH_KEY = "X-Auth-Key"
X_AUTH_TOKEN = "X-Auth-Token"
X_STORAGE_TOKEN = "X-Storage-Token"
X_STORAGE_URL = "X-Storage-Url"
X_CDN_MANAGEMENT_URL = "X-CDN-Management-Url"

# Account / container accounting
X_ACCOUNT_CONTAINER_COUNT = "X-Account-Container-Count"
X_ACCOUNT_BYTES_USED = "X-Account-Bytes-Used"
X_CONTAINER_OBJECT_COUNT = "X-Container-Object-Count"
X_CONTAINER_BYTES_USED = "X-Container-Bytes-Used"

# Metadata prefixes
ACCOUNT_META_PREFIX = "X-Account-Meta-"
CONTAINER_META_PREFIX = "X-Container-Meta-"
OBJECT_META_PREFIX = "X-Object-Meta-"

# CDN
X_CDN_ENABLED = "X-CDN-Enabled"
X_CDN_URI = "X-CDN-URI"
X_CDN_SSL_URI = "X-CDN-SSL-URI"
X_CDN_STREAMING_URI = "X-CDN-Streaming-URI"
X_TTL = "X-TTL"
X_LOG_RETENTION = "X-Log-Retention"

# Object
ETAG = "ETag"
CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"
LAST_MODIFIED = "Last-Modified"
DESTINATION = "Destination"
USER_AGENT = "User-Agent"

# Request headers a caller may pass to an object GET
GET_ITEM_REQUEST_HEADERS = frozenset({
    "range",
    "if-match",
    "if-none-match",
    "if-modified-since",
    "if-unmodified-since",
})

# Limits
MAX_CONTAINER_NAME_LENGTH = 256
MAX_OBJECT_NAME_LENGTH = 128
MAX_META_KEY_LENGTH = 128
MAX_META_VALUE_LENGTH = 128
MAX_LIST_LIMIT = 10000

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_CDN_TTL = 86400
