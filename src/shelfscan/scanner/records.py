"""Library item and file records exchanged with the scan driver.

The persisted record and the freshly scanned candidate use the same types.
Records are mutable: ScanReconciler updates the persisted record in place
and the driver saves it afterwards.

Timestamps from the file system (``*_ms``) are epoch milliseconds as
reported by stat; ``last_scan_at`` and ``updated_at`` are epoch seconds.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields


@dataclass
class FileMetadata:
    """File-system facts about one library file."""

    path: str
    rel_path: str
    filename: str = ""
    ext: str = ""
    size: int = 0
    mtime_ms: int | None = None
    ctime_ms: int | None = None
    birthtime_ms: int | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        """Return the metadata field names in declaration order."""
        return tuple(f.name for f in fields(cls))


@dataclass
class LibraryFileRecord:
    """One file belonging to a library item."""

    metadata: FileMetadata
    ino: int | None = None
    is_supplementary: bool = False
    is_ebook_file: bool = False
    updated_at: float | None = None

    @property
    def path(self) -> str:
        return self.metadata.path

    def copy(self) -> LibraryFileRecord:
        """Return an independent deep copy."""
        return copy.deepcopy(self)


@dataclass
class LibraryItemRecord:
    """A logical library item (one book or album) and its files.

    ``changed_fields`` names every attribute the reconciler touched since
    the driver last cleared it; the persistence layer uses it to decide
    which columns to write.
    """

    library_folder_id: str
    path: str
    rel_path: str
    is_file: bool = False
    ino: int | None = None
    mtime_ms: int | None = None
    ctime_ms: int | None = None
    birthtime_ms: int | None = None
    size: int = 0
    library_files: list[LibraryFileRecord] = field(default_factory=list)
    is_missing: bool = False
    last_scan_at: float | None = None
    last_scan_version: str | None = None
    changed_fields: set[str] = field(default_factory=set)

    def total_file_size(self) -> int:
        """Return the sum of the sizes of all files."""
        return sum(lf.metadata.size for lf in self.library_files)
