from typing import Iterable, List, Optional
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from config.models import ChatConfig, ClientConfig
from constant import API_KEYS_KEY, CUSTOM_HOST_KEY, FAVORITE_MODELS_KEY, MODEL_PREFIX, SELECTED_MODEL_KEY
from gemini_chat.llm_client.schemas import ModelInfo
from gemini_chat.models import ApiKey
from gemini_chat.preference_store import PreferenceStore
from logger import get_logger

logger = get_logger(__name__)

_keys_adapter = TypeAdapter(List[ApiKey])
_models_adapter = TypeAdapter(List[ModelInfo])


class SettingsStore:
    """API keys, model choice, favourite models and the custom host."""

    def __init__(
        self,
        preferences: PreferenceStore,
        client_config: Optional[ClientConfig] = None,
        chat_config: Optional[ChatConfig] = None,
    ):
        self.preferences = preferences
        self.client_config = client_config or ClientConfig()
        self.chat_config = chat_config or ChatConfig()

        self._keys: List[ApiKey] = self._load_list(API_KEYS_KEY, _keys_adapter)
        self._current_key_id: Optional[UUID] = self._keys[0].id if self._keys else None

    # --- API keys ------------------------------------------------------- #
    @property
    def api_keys(self) -> List[ApiKey]:
        return [key.model_copy() for key in self._keys]

    @property
    def current_key_id(self) -> Optional[UUID]:
        return self._current_key_id

    @property
    def active_api_key(self) -> str:
        current = next((key for key in self._keys if key.id == self._current_key_id), None)
        return current.key if current else ""

    def add_key(self, key: str, label: str = "") -> UUID:
        api_key = ApiKey(key=key, label=label or f"Key {len(self._keys) + 1}")
        self._keys.append(api_key)
        self._current_key_id = api_key.id
        self._save_keys()
        return api_key.id

    def delete_keys(self, key_ids: Iterable[UUID]) -> None:
        doomed = set(key_ids)
        self._keys = [key for key in self._keys if key.id not in doomed]
        if self._current_key_id in doomed:
            self._current_key_id = self._keys[0].id if self._keys else None
        self._save_keys()

    def select_key(self, key_id: UUID) -> None:
        if any(key.id == key_id for key in self._keys):
            self._current_key_id = key_id

    def _save_keys(self) -> None:
        self.preferences.set(API_KEYS_KEY, _keys_adapter.dump_json(self._keys).decode("utf-8"))

    # --- models --------------------------------------------------------- #
    @property
    def selected_model_id(self) -> str:
        return self.preferences.get(SELECTED_MODEL_KEY) or self.chat_config.default_model

    @selected_model_id.setter
    def selected_model_id(self, model_id: str) -> None:
        self.preferences.set(SELECTED_MODEL_KEY, model_id)

    @property
    def current_model_name(self) -> str:
        return self.selected_model_id.replace(MODEL_PREFIX, "")

    @property
    def favorites(self) -> List[ModelInfo]:
        return self._load_list(FAVORITE_MODELS_KEY, _models_adapter)

    def add_favorite(self, model: ModelInfo) -> bool:
        current = self.favorites
        if model in current:
            return False
        current.append(model)
        self.preferences.set(FAVORITE_MODELS_KEY, _models_adapter.dump_json(current, by_alias=True).decode("utf-8"))
        return True

    # --- host ----------------------------------------------------------- #
    @property
    def host(self) -> str:
        return self.preferences.get(CUSTOM_HOST_KEY) or self.client_config.default_host

    @host.setter
    def host(self, value: str) -> None:
        self.preferences.set(CUSTOM_HOST_KEY, value.strip())

    def _load_list(self, key: str, adapter: TypeAdapter) -> list:
        raw = self.preferences.get(key)
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Stored value for %s is unreadable, using defaults: %s", key, e)
            return []
