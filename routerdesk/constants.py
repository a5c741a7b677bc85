# routerdesk/constants.py

APP_NAME = "RouterDesk"
__version__ = "0.4.0-dev"
SETTINGS_SCHEMA = 1
DEFAULT_LOG_FILENAME = "app.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5

DEFAULT_SERVER_URL = "http://127.0.0.1:8080"
DEFAULT_TIMEOUT = 120
CHAT_COMPLETIONS_PATH = "/api/v1/chat/completions"
MODELS_PATH = "/api/models"
PROVIDERS_PATH = "/api/providers"
