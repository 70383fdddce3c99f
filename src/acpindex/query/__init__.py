"""Read-only index queries."""

from acpindex.query.engine import Query

__all__ = ["Query"]
