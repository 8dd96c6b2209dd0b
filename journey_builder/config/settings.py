"""Configuration loading: YAML file -> env vars -> Pydantic defaults."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel

from journey_builder.catalog.builder import DEFAULT_GLOBAL_SOURCES
from journey_builder.models.catalog import GlobalSource


class ApiConfig(BaseModel):
    base_url: str = "http://localhost:3000/api/v1"
    tenant_id: str = "123"
    blueprint_id: str = "bp_456"
    timeout: float = 30.0


class CatalogConfig(BaseModel):
    field_fetch_timeout: float | None = 10.0
    global_sources: list[GlobalSource] = DEFAULT_GLOBAL_SOURCES


class StorageConfig(BaseModel):
    data_dir: str = "data"


class Settings(BaseModel):
    api: ApiConfig = ApiConfig()
    catalog: CatalogConfig = CatalogConfig()
    storage: StorageConfig = StorageConfig()


def _optional_float(val: str) -> float | None:
    return None if val.strip().lower() in ("", "none", "off") else float(val)


_ENV_MAP: dict[str, tuple[str, str, type]] = {
    "JB_API_BASE_URL": ("api", "base_url", str),
    "JB_TENANT_ID": ("api", "tenant_id", str),
    "JB_BLUEPRINT_ID": ("api", "blueprint_id", str),
    "JB_API_TIMEOUT": ("api", "timeout", float),
    "JB_FIELD_FETCH_TIMEOUT": ("catalog", "field_fetch_timeout", _optional_float),
    "JB_DATA_DIR": ("storage", "data_dir", str),
}


def load_settings(config_path: str | None = None) -> Settings:
    """Load settings: YAML file -> env var overrides -> Pydantic defaults."""
    yaml_data: dict = {}

    # 1. Resolve config file path
    path = _resolve_config_path(config_path)
    if path and path.is_file():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}

    # 2. Build settings from YAML (or defaults)
    settings = Settings.model_validate(yaml_data) if yaml_data else Settings()

    # 3. Override with env vars, section by section
    overrides: dict[str, dict] = {}
    for env_key, (section, field_name, field_type) in _ENV_MAP.items():
        val = os.environ.get(env_key)
        if val is not None:
            overrides.setdefault(section, {})[field_name] = field_type(val)

    if overrides:
        merged = settings.model_dump()
        for section, values in overrides.items():
            merged[section].update(values)
        settings = Settings.model_validate(merged)

    return settings


def _resolve_config_path(explicit_path: str | None) -> Path | None:
    if explicit_path:
        return Path(explicit_path)

    env_path = os.environ.get("JB_CONFIG_FILE")
    if env_path:
        return Path(env_path)

    pkg_dir = Path(__file__).parent
    default = pkg_dir / "config.yaml"
    if default.is_file():
        return default

    return None
