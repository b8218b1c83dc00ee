"""External issue importers."""

from safer.importers.base import (
    ALREADY_IMPORTED,
    ImportedItem,
    ImportMetadata,
    ImportOptions,
    ImportResult,
    ImportSource,
    Importer,
    convert_to_delivery_item,
    estimate_stress,
    run_import,
)
from safer.importers.github import GitHubImporter, extract_priority

__all__ = [
    "ALREADY_IMPORTED",
    "ImportedItem",
    "ImportMetadata",
    "ImportOptions",
    "ImportResult",
    "ImportSource",
    "Importer",
    "convert_to_delivery_item",
    "estimate_stress",
    "run_import",
    "GitHubImporter",
    "extract_priority",
]
