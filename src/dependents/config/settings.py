import os
from dotenv import load_dotenv
load_dotenv()
# ---- npm registry ----
REGISTRY_BASE_URL = os.environ.get("DEPENDENTS_REGISTRY_URL", "https://registry.npmmirror.com")
PACKAGE_LINK_BASE_URL = "https://npmx.dev"

# ---- CouchDB (dependents + downloads views) ----
# No default: the view server is deployment specific.
COUCHDB_URL = os.environ.get("DEPENDENTS_COUCHDB_URL")
COUCHDB_USER = os.environ.get("DEPENDENTS_COUCHDB_USER")
COUCHDB_PASSWORD = os.environ.get("DEPENDENTS_COUCHDB_PASSWORD")

DEPENDENTS_VIEW = "dependents2"
DEV_DEPENDENTS_VIEW = "dev-dependencies"
DOWNLOADS_VIEW = "downloads"

# ----- HTTP ------
# unset = no timeout
_timeout = os.environ.get("DEPENDENTS_HTTP_TIMEOUT")
HTTP_TIMEOUT_SEC = float(_timeout) if _timeout else None
MAX_CONNECTIONS = int(os.environ.get("DEPENDENTS_MAX_CONNECTIONS", "16"))

# ----- Report defaults -----
DEFAULT_RECURSIVE_WIDTH = 3
DEFAULT_DEPTHS = 0
MAX_VERSION_WIDTH = 16
