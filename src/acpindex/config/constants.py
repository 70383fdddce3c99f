"""Index constants.

This module contains truly constant values that should NOT be user-configurable.
These are document-format identifiers and detector thresholds that consumers of
the index rely on.

For configurable values, see models.py (ProvenanceConfig, BridgeConfig, etc.).
"""

# =============================================================================
# Index Document
# =============================================================================

SCHEMA_URL = "https://acp-protocol.dev/schemas/v1/cache.schema.json"
"""Value written to the ``$schema`` field of every index document."""

SCHEMA_VERSION = "1.0.0"
"""Index document format version."""

# =============================================================================
# Convention Detection
# =============================================================================

MIN_FILES_FOR_PATTERN = 3
"""Directories with fewer files are skipped by the naming detector."""

CONFIDENCE_THRESHOLD = 0.70
"""Share of files that must carry a suffix for it to count as a convention."""

MAX_EXAMPLES = 5
"""Maximum example file names recorded per naming convention."""

# =============================================================================
# Symbol Records
# =============================================================================

ANNOTATED_SYMBOL_SPAN = 10
"""Line span assigned to symbols declared only through annotations."""

HOTPATH_LIMIT = 10
"""Default number of symbols returned by hotpath queries."""
