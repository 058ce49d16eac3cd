import os
from pathlib import Path

import yaml

from config.models import AppConfig, ChatConfig, ClientConfig, StorageConfig

CONFIG_DIR = Path(__file__).parent


def load_yaml_file(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r") as file:
        return yaml.safe_load(file) or {}


def _apply_env_overrides(section: dict, overrides: dict) -> dict:
    for env_name, field_name in overrides.items():
        value = os.getenv(env_name)
        if value is not None:
            section[field_name] = value
    return section


def load_config(config_dir: Path = CONFIG_DIR) -> AppConfig:
    config_dir = Path(config_dir)
    client_section = _apply_env_overrides(
        load_yaml_file(config_dir / "llm.yaml"),
        {"GEMINI_HOST": "default_host", "GEMINI_VERIFY_TLS": "verify_tls"},
    )
    storage_section = _apply_env_overrides(
        load_yaml_file(config_dir / "storage.yaml"),
        {"REDIS_URL": "redis_url"},
    )
    return AppConfig(
        client=ClientConfig(**client_section),
        chat=ChatConfig(**load_yaml_file(config_dir / "chat.yaml")),
        storage=StorageConfig(**storage_section),
    )


if __name__ == "__main__":
    config = load_config()

    print(config.client.default_host)
    print(config.chat.default_model)
