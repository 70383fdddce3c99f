"""Config module exports."""

from acpindex.config.loader import AcpIndexSettings, load_config, resolve_output_path
from acpindex.config.models import (
    AcpIndexConfig,
    BridgeConfig,
    IndexConfig,
    IndexerConfig,
    LoggingConfig,
    ProvenanceConfig,
)

__all__ = [
    "load_config",
    "resolve_output_path",
    "AcpIndexConfig",
    "AcpIndexSettings",
    "BridgeConfig",
    "IndexConfig",
    "IndexerConfig",
    "LoggingConfig",
    "ProvenanceConfig",
]
