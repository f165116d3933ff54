from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("CLOUDSTASH_LOG_LEVEL", "warning")
DEBUG_LOG_FILE = config.get("CLOUDSTASH_DEBUG_LOG", "cloudstash_debug.log")

# Preferences and transient OAuth state are kept here; tokens go to the OS keychain
DATA_DIR = config.get("CLOUDSTASH_DATA_DIR", "~/.cloudstash")

# Google OAuth endpoints (hardcoded - not user configurable)
AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

# Drive API endpoints
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
UPLOAD_API_BASE = "https://www.googleapis.com/upload/drive/v3"
DIRECT_DOWNLOAD_URL = "https://drive.google.com/uc?id={file_id}&export=download"

# Refresh the access token when it expires within this many seconds
REFRESH_MARGIN_SECONDS = 300

# Listing is a single page, newest first
LIST_PAGE_SIZE = 50

# Progress callbacks fire at most once per this many bytes
PROGRESS_INTERVAL_BYTES = 65536

# Timeout configuration
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CLOUDSTASH_CONNECT_TIMEOUT", 10.0)
# Request timeout: token endpoint, listing, permissions, deletes
REQUEST_TIMEOUT = config.get("CLOUDSTASH_REQUEST_TIMEOUT", 60.0)
# Transfer timeout: uploads and downloads (large bodies take longer)
TRANSFER_TIMEOUT = config.get("CLOUDSTASH_TRANSFER_TIMEOUT", 600.0)
