DEFAULT_HOST = "https://gemini.yamadaryo.me"
DEFAULT_MODEL = "models/gemini-2.5-flash"
API_VERSION_PREFIX = "/v1beta/"
MODEL_PREFIX = "models/"
GENERATE_CONTENT_METHOD = "generateContent"
IMAGE_MIME_TYPE = "image/jpeg"

# preference store keys
SESSIONS_KEY = "chatSessions_v1"
API_KEYS_KEY = "myApiKeys"
FAVORITE_MODELS_KEY = "savedModels"
CUSTOM_HOST_KEY = "customHost"
SELECTED_MODEL_KEY = "selectedModel"

DEFAULT_SESSION_TITLE = "New Chat"
TITLE_LENGTH = 10
HISTORY_LIMIT = 10

SSE_DATA_PREFIX = "data: "
SSE_DONE = "[DONE]"

NO_API_KEY_MESSAGE = "⚠️ Please add an API key in settings first"
REQUEST_FAILED_TEMPLATE = "❌ Request failed: {error}"
INTERRUPTED_MARKER = "\n\n[Connection interrupted]"
API_ERROR_TEMPLATE = " [API error: {status_code} - check that the model is supported and the key is valid]"
