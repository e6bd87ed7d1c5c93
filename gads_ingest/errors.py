"""
Editor import error hierarchy.

Every failure that aborts an import is raised as an EditorImportError so the
trigger surface can turn it into a structured failure response. The ledger id
and the stats accumulated so far travel with the exception when known.
"""
from typing import Dict, Optional


class EditorImportError(Exception):
    """Base exception for editor import failures."""

    def __init__(self, message: str, import_id: Optional[int] = None, stats: Optional[Dict] = None):
        super().__init__(message)
        self.import_id = import_id
        self.stats = stats

    def to_dict(self) -> Dict:
        return {"import_id": self.import_id, "stats": self.stats}


class EditorImportStructureError(EditorImportError):
    """Raised when the header line cannot identify campaigns, ad groups and keywords."""


class EditorImportTimeoutError(EditorImportError):
    """Raised when an import exceeds its wall-clock execution budget."""


class EditorImportTooLargeError(EditorImportError):
    """Raised when a direct upload exceeds the maximum payload size."""
