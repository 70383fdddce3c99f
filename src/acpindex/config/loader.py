"""Layered configuration loading.

Layers, lowest precedence first:

- built-in model defaults
- ``~/.config/acpindex/config.yaml``
- ``<root>/.acpindex/config.yaml``
- ``ACPINDEX__SECTION__KEY`` environment variables
- keyword overrides passed to ``load_config``

YAML layers are deep-merged section by section; environment and keyword
layers are applied by pydantic-settings on top of the merged YAML.
"""

from functools import reduce
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from acpindex.config.models import (
    AcpIndexConfig,
    BridgeConfig,
    IndexConfig,
    IndexerConfig,
    LoggingConfig,
    ProvenanceConfig,
)
from acpindex.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/acpindex/config.yaml").expanduser()
REPO_CONFIG_DIR = ".acpindex"
REPO_CONFIG_NAME = "config.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read one YAML layer. A missing or empty file is an empty layer."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level document must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def config_files(repo_root: Path) -> list[Path]:
    """YAML layer paths for ``repo_root``, lowest precedence first."""
    return [GLOBAL_CONFIG_PATH, repo_root / REPO_CONFIG_DIR / REPO_CONFIG_NAME]


class _MergedYamlSource(PydanticBaseSettingsSource):
    """Serves the already-merged YAML layers to pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], merged: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._merged = merged

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._merged.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._merged


class AcpIndexSettings(BaseSettings):
    """Root settings. Sections map to ``ACPINDEX__<SECTION>__<KEY>`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="ACPINDEX__",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    logging: LoggingConfig = LoggingConfig()
    index: IndexConfig = IndexConfig()
    indexer: IndexerConfig = IndexerConfig()
    provenance: ProvenanceConfig = ProvenanceConfig()
    bridge: BridgeConfig = BridgeConfig()


def _settings_with_yaml(merged: dict[str, Any]) -> type[AcpIndexSettings]:
    """Subclass of AcpIndexSettings whose lowest source is ``merged``."""

    class _Settings(AcpIndexSettings):
        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _MergedYamlSource(settings_cls, merged))

    return _Settings


def _as_config_error(error: ValidationError) -> ConfigError:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return ConfigError.invalid_value(field, first.get("input"), first["msg"])


def load_config(repo_root: Path | None = None, **overrides: Any) -> AcpIndexConfig:
    """Resolve the configuration for ``repo_root`` (default: the working directory).

    Raises:
        ConfigError: A YAML layer is malformed or a value fails validation.
    """
    root = repo_root or Path.cwd()
    merged = reduce(_deep_merge, (_load_yaml(path) for path in config_files(root)), {})
    try:
        settings = _settings_with_yaml(merged)(**overrides)
    except ValidationError as e:
        raise _as_config_error(e) from e
    return AcpIndexConfig.model_validate(settings.model_dump())


def resolve_output_path(repo_root: Path, config: AcpIndexConfig) -> Path:
    """Absolute path of the index document for a repository."""
    output = Path(config.index.output).expanduser()
    return output if output.is_absolute() else repo_root / output
