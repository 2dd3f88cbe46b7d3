CONFIG_FILE = "shiptivity.yaml"
CONFIG_ENV_VAR = "SHIPTIVITY_CONFIG"
DB_PATH_ENV_VAR = "SHIPTIVITY_DB_PATH"
LOG_LEVEL_ENV_VAR = "SHIPTIVITY_LOG_LEVEL"

DEFAULT_DB_PATH = "clients.db"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_BUSY_TIMEOUT_SECONDS = 5.0

API_PREFIX = "/api/v1/clients"
ROOT_MESSAGE = "SHIPTIVITY API. Read documentation to see API docs"
