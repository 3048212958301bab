"""Scanner module for shelfscan.

This module decides what changed between a persisted library item and a
fresh scan of it. Walking directories and saving records belong to the
external scan driver.

Public API:
    - ScanReconciler: Applies a fresh scan to a persisted record
    - ReconcileResult / FieldChange / FileModification: Change report
    - LibraryItemRecord / LibraryFileRecord / FileMetadata: Records
    - match_library_files / compare_update_library_file: Pure helpers
    - ReconciliationInputInvalid: Raised for malformed records
"""

from shelfscan.scanner.exceptions import ReconciliationInputInvalid
from shelfscan.scanner.reconciler import (
    FieldChange,
    FileModification,
    ReconcileResult,
    ReconcileState,
    ScanReconciler,
    compare_update_library_file,
    file_metadata_is_authoritative,
    item_keys_for_policy,
    match_library_files,
    validate_item_record,
)
from shelfscan.scanner.records import (
    FileMetadata,
    LibraryFileRecord,
    LibraryItemRecord,
)

__all__ = [
    "FieldChange",
    "FileMetadata",
    "FileModification",
    "LibraryFileRecord",
    "LibraryItemRecord",
    "ReconcileResult",
    "ReconcileState",
    "ReconciliationInputInvalid",
    "ScanReconciler",
    "compare_update_library_file",
    "file_metadata_is_authoritative",
    "item_keys_for_policy",
    "match_library_files",
    "validate_item_record",
]
