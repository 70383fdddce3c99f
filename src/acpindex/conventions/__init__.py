"""Naming and import convention detection."""

from acpindex.conventions.analyzer import ConventionsAnalyzer
from acpindex.conventions.naming import NamingDetector, detect_naming_conventions

__all__ = ["ConventionsAnalyzer", "NamingDetector", "detect_naming_conventions"]
