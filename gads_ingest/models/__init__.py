"""Database models for the editor export ingest service"""

from gads_ingest.models.editor_import import (
    EditorImport,
    EditorCampaign,
    EditorAdGroup,
    EditorKeyword,
    EditorAd
)
