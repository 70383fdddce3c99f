"""acp-index: a queryable index of source files, symbols, call graphs and ``@acp`` annotations."""

from importlib.metadata import PackageNotFoundError, version

from acpindex.cache import Index, dumps_index, load_index, loads_index, save_index
from acpindex.config import AcpIndexConfig, load_config
from acpindex.index import Indexer
from acpindex.query import Query

try:
    __version__ = version("acp-index")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "AcpIndexConfig",
    "Index",
    "Indexer",
    "Query",
    "__version__",
    "dumps_index",
    "load_config",
    "loads_index",
    "load_index",
    "save_index",
]
