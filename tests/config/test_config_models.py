"""Tests for config/models.py validation and helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from acpindex.config.models import (
    BridgeConfig,
    IndexConfig,
    IndexerConfig,
    LogOutputConfig,
    ProvenanceConfig,
    PythonBridgeConfig,
)


class TestLogOutputConfig:
    """Log destination validation."""

    @pytest.mark.parametrize("destination", ["stderr", "stdout"])
    def test_stream_destinations(self, destination: str) -> None:
        """Standard streams are accepted verbatim."""
        assert LogOutputConfig(destination=destination).destination == destination

    def test_relative_file_rejected(self) -> None:
        """File destinations must be absolute."""
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/index.log")


class TestIndexConfig:
    """Index defaults."""

    def test_default_patterns(self) -> None:
        """Defaults include common sources and exclude dependency directories."""
        config = IndexConfig()
        assert "**/*.ts" in config.include
        assert "**/*.py" in config.include
        assert "**/node_modules/**" in config.exclude
        assert "**/.git/**" in config.exclude

    def test_default_lists_are_independent(self) -> None:
        """Each instance gets its own pattern lists."""
        first = IndexConfig()
        first.include.append("**/*.rb")
        assert "**/*.rb" not in IndexConfig().include


class TestIndexerConfig:
    """Worker count validation."""

    def test_rejects_zero_workers(self) -> None:
        """At least one worker is required."""
        with pytest.raises(ValidationError):
            IndexerConfig(max_workers=0)

    def test_accepts_single_worker(self) -> None:
        """One worker means in-process extraction."""
        assert IndexerConfig(max_workers=1).max_workers == 1


class TestProvenanceConfig:
    """Threshold validation."""

    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_out_of_range_rejected(self, value: float) -> None:
        """Thresholds must lie within [0, 1]."""
        with pytest.raises(ValidationError):
            ProvenanceConfig(review_threshold=value)


class TestBridgeConfig:
    """Bridge configuration helpers."""

    def test_disabled_by_default(self) -> None:
        """Bridging is opt-in."""
        config = BridgeConfig()
        assert config.enabled is False
        assert config.is_enabled_for("python") is False

    @pytest.mark.parametrize(
        ("language", "expected"),
        [
            ("python", True),
            ("typescript", True),
            ("js", True),
            ("rust", True),
            ("go", True),
            ("ruby", False),
        ],
    )
    def test_enabled_for_language(self, language: str, expected: bool) -> None:
        """Enabled bridging applies per language family."""
        assert BridgeConfig(enabled=True).is_enabled_for(language) is expected

    def test_language_switch_disables_family(self) -> None:
        """Turning off a language family excludes only that family."""
        config = BridgeConfig(enabled=True, python=PythonBridgeConfig(enabled=False))
        assert config.is_enabled_for("python") is False
        assert config.is_enabled_for("typescript") is True

    def test_unknown_strictness_rejected(self) -> None:
        """Strictness is permissive or strict."""
        with pytest.raises(ValidationError):
            BridgeConfig(strictness="lenient")  # type: ignore[arg-type]
