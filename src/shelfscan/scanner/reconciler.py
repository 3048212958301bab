"""Change detection between a persisted library item and a fresh scan.

ScanReconciler compares one persisted LibraryItemRecord against the
candidate built by the scan driver for the same logical item, applies the
differences to the persisted record in place, and reports what changed.
Which file-system signals count is decided by ConsistencyPolicy:

- STRICT: inode numbers and mtime/ctime/birthtime are identity and change
  signals; a file missing at its old path is looked up again by inode.
- TOLERANT: those values are still copied onto the record but never mark
  a change; only path and size do.

The comparison helpers are pure functions of their inputs and the policy,
so they can be tested and reused without a reconciler instance.
"""

from __future__ import annotations

import copy
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from shelfscan import __version__
from shelfscan.config.models import ScanConfig
from shelfscan.domain import ConsistencyPolicy
from shelfscan.scanner.exceptions import ReconciliationInputInvalid
from shelfscan.scanner.records import (
    FileMetadata,
    LibraryFileRecord,
    LibraryItemRecord,
)

logger = logging.getLogger(__name__)

ITEM_KEYS: tuple[str, ...] = ("library_folder_id", "path", "rel_path", "is_file")
ITEM_TIMESTAMP_KEYS: tuple[str, ...] = ("mtime_ms", "ctime_ms", "birthtime_ms")
PATH_KEYS = frozenset({"path", "rel_path"})

# File fields that are a real change under every policy
ALWAYS_COMPARED_FILE_KEYS = frozenset({"path", "rel_path", "size"})


class ReconcileState(Enum):
    """Progress of a single reconcile call."""

    NO_CHANGE = "no_change"
    EVALUATING = "evaluating"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class FieldChange:
    """One applied change, for the scan log.

    Attributes:
        scope: "item" or "file".
        field: Attribute name that changed.
        old: Value before the change.
        new: Value after the change.
        file_path: Path of the file for file-scope changes.
    """

    scope: str
    field: str
    old: Any
    new: Any
    file_path: str | None = None


@dataclass(frozen=True)
class FileModification:
    """A matched file that changed: snapshot before, live record after."""

    before: LibraryFileRecord
    after: LibraryFileRecord


@dataclass
class ReconcileResult:
    """Change report returned by ScanReconciler.reconcile()."""

    has_changes: bool = False
    has_path_change: bool = False
    files_added: list[LibraryFileRecord] = field(default_factory=list)
    files_removed: list[LibraryFileRecord] = field(default_factory=list)
    files_modified: list[FileModification] = field(default_factory=list)
    changes: list[FieldChange] = field(default_factory=list)
    state: ReconcileState = ReconcileState.NO_CHANGE

    @property
    def has_library_file_changes(self) -> bool:
        """True if the file list itself must be written back."""
        return bool(self.files_added or self.files_removed or self.files_modified)


def _require_policy(policy: ConsistencyPolicy) -> ConsistencyPolicy:
    if not isinstance(policy, ConsistencyPolicy):
        raise ValueError(f"Unknown consistency policy: {policy!r}")
    return policy


def file_metadata_is_authoritative(policy: ConsistencyPolicy) -> bool:
    """Return True if inode and timestamps are change signals under a policy."""
    policy = _require_policy(policy)
    if policy is ConsistencyPolicy.STRICT:
        return True
    elif policy is ConsistencyPolicy.TOLERANT:
        return False
    else:
        raise ValueError(f"Unhandled consistency policy: {policy!r}")


def item_keys_for_policy(policy: ConsistencyPolicy) -> tuple[str, ...]:
    """Return the item attributes compared as identity fields.

    The inode is compared only when file metadata is authoritative.
    """
    if file_metadata_is_authoritative(policy):
        return ("ino",) + ITEM_KEYS
    return ITEM_KEYS


def match_library_files(
    existing_files: Sequence[LibraryFileRecord],
    candidate_files: Sequence[LibraryFileRecord],
    policy: ConsistencyPolicy,
) -> tuple[
    list[tuple[LibraryFileRecord, LibraryFileRecord]],
    list[LibraryFileRecord],
    list[LibraryFileRecord],
]:
    """Pair existing files with candidate files.

    Every existing file is first matched by exact path. Only then, and only
    when file metadata is authoritative, are the still unmatched existing
    files matched by inode against the still unclaimed candidates. A
    candidate is claimed by at most one existing file, and an unknown inode
    never matches.

    Returns:
        Tuple of (matched pairs in existing order, removed existing files in
        existing order, added candidate files in candidate order).
    """
    use_inode = file_metadata_is_authoritative(policy)

    candidates_by_path: dict[str, int] = {}
    for index, candidate in enumerate(candidate_files):
        candidates_by_path.setdefault(candidate.metadata.path, index)

    claimed: set[int] = set()
    match_for: dict[int, int] = {}

    for e_index, existing in enumerate(existing_files):
        c_index = candidates_by_path.get(existing.metadata.path)
        if c_index is not None and c_index not in claimed:
            claimed.add(c_index)
            match_for[e_index] = c_index

    if use_inode:
        for e_index, existing in enumerate(existing_files):
            if e_index in match_for or existing.ino is None:
                continue
            for c_index, candidate in enumerate(candidate_files):
                if c_index not in claimed and candidate.ino == existing.ino:
                    claimed.add(c_index)
                    match_for[e_index] = c_index
                    logger.info(
                        'Library file with path "%s" not found, but found file '
                        'with matching inode value "%s" at path "%s"',
                        existing.metadata.path,
                        existing.ino,
                        candidate.metadata.path,
                    )
                    break

    matches = [
        (existing, candidate_files[match_for[e_index]])
        for e_index, existing in enumerate(existing_files)
        if e_index in match_for
    ]
    removed = [
        existing
        for e_index, existing in enumerate(existing_files)
        if e_index not in match_for
    ]
    added = [
        candidate
        for c_index, candidate in enumerate(candidate_files)
        if c_index not in claimed
    ]
    return matches, removed, added


def compare_update_library_file(
    existing: LibraryFileRecord,
    scanned: LibraryFileRecord,
    policy: ConsistencyPolicy,
    now: float | None = None,
) -> list[FieldChange]:
    """Copy a scanned file's values onto its existing record.

    Path, relative path and size differences are always changes. Under a
    policy where file metadata is authoritative, every other metadata
    difference and an inode difference are changes too; otherwise they are
    copied silently.

    Args:
        existing: Persisted file record; updated in place.
        scanned: Matching file from the fresh scan.
        policy: Consistency policy in effect.
        now: Epoch seconds stored in ``updated_at`` when anything changed
            (defaults to time.time()).

    Returns:
        The changes that count, in field order. Empty if none.
    """
    authoritative = file_metadata_is_authoritative(policy)
    file_path = scanned.metadata.path
    changes: list[FieldChange] = []

    if existing.ino != scanned.ino:
        if authoritative:
            changes.append(
                FieldChange("file", "ino", existing.ino, scanned.ino, file_path)
            )
        existing.ino = scanned.ino

    for key in FileMetadata.field_names():
        old = getattr(existing.metadata, key)
        new = getattr(scanned.metadata, key)
        if old == new:
            continue
        if key in ALWAYS_COMPARED_FILE_KEYS or authoritative:
            changes.append(FieldChange("file", key, old, new, file_path))
            logger.debug(
                'Library file "%s" key "%s" changed from "%s" to "%s"',
                file_path,
                key,
                old,
                new,
            )
        setattr(existing.metadata, key, new)

    if changes:
        existing.updated_at = time.time() if now is None else now
    return changes


def validate_item_record(record: LibraryItemRecord, role: str) -> None:
    """Check that a record satisfies the reconciler's input contract.

    Raises:
        ReconciliationInputInvalid: Naming the role ("existing" or
            "candidate") and the offending field.
    """
    if not isinstance(record, LibraryItemRecord):
        raise ReconciliationInputInvalid(
            f"{role} record must be a LibraryItemRecord, got {type(record).__name__}"
        )
    for key in ("library_folder_id", "path", "rel_path"):
        value = getattr(record, key)
        if not isinstance(value, str) or not value:
            raise ReconciliationInputInvalid(
                f"{role} record is missing required field {key!r}"
            )
    if not isinstance(record.library_files, list):
        raise ReconciliationInputInvalid(f"{role} record library_files must be a list")

    seen_paths: set[str] = set()
    for index, library_file in enumerate(record.library_files):
        if not isinstance(library_file, LibraryFileRecord) or not isinstance(
            library_file.metadata, FileMetadata
        ):
            raise ReconciliationInputInvalid(
                f"{role} record file #{index} is not a LibraryFileRecord "
                "with FileMetadata"
            )
        metadata = library_file.metadata
        if not isinstance(metadata.path, str) or not metadata.path:
            raise ReconciliationInputInvalid(
                f"{role} record file #{index} is missing its path"
            )
        if not isinstance(metadata.size, int) or metadata.size < 0:
            raise ReconciliationInputInvalid(
                f"{role} record file {metadata.path!r} has invalid size "
                f"{metadata.size!r}"
            )
        if metadata.path in seen_paths:
            raise ReconciliationInputInvalid(
                f"{role} record lists file {metadata.path!r} more than once"
            )
        seen_paths.add(metadata.path)


class ScanReconciler:
    """Applies a fresh scan of a library item to its persisted record.

    One instance can reconcile many items, also from several threads, as
    long as the same item is never reconciled twice at once.

    Example:
        reconciler = ScanReconciler(ConsistencyPolicy.TOLERANT)
        result = reconciler.reconcile(existing, candidate)
        if result.has_changes:
            save(existing)
    """

    def __init__(
        self,
        policy: ConsistencyPolicy = ConsistencyPolicy.STRICT,
        *,
        scanner_version: str = __version__,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the reconciler.

        Args:
            policy: Consistency policy to apply.
            scanner_version: Stored in ``last_scan_version`` on change.
            clock: Wall-clock source (epoch seconds).
        """
        self._policy = _require_policy(policy)
        self._scanner_version = scanner_version
        self._clock = clock

    @classmethod
    def from_config(cls, config: ScanConfig) -> ScanReconciler:
        """Create a reconciler for the configured consistency policy."""
        return cls(config.consistency_policy)

    @property
    def policy(self) -> ConsistencyPolicy:
        return self._policy

    def reconcile(
        self, existing: LibraryItemRecord, candidate: LibraryItemRecord
    ) -> ReconcileResult:
        """Apply ``candidate`` to ``existing`` and report the changes.

        Args:
            existing: Persisted record; updated in place.
            candidate: Fresh scan of the same item; not modified.

        Returns:
            ReconcileResult. ``existing`` needs saving iff ``has_changes``.

        Raises:
            ReconciliationInputInvalid: If either record is malformed. The
                existing record is left untouched in that case.
        """
        validate_item_record(existing, "existing")
        validate_item_record(candidate, "candidate")

        result = ReconcileResult(state=ReconcileState.EVALUATING)
        authoritative = file_metadata_is_authoritative(self._policy)
        now = self._clock()

        def apply_item_change(key: str, new: Any) -> None:
            old = getattr(existing, key)
            logger.debug(
                'Library item "%s" key "%s" changed from "%s" to "%s"',
                existing.rel_path,
                key,
                old,
                new,
            )
            setattr(existing, key, new)
            existing.changed_fields.add(key)
            result.changes.append(FieldChange("item", key, old, new))
            result.has_changes = True

        # Item identity fields
        for key in item_keys_for_policy(self._policy):
            new = getattr(candidate, key)
            if getattr(existing, key) != new:
                apply_item_change(key, new)
                if key in PATH_KEYS:
                    result.has_path_change = True

        # Timestamps
        for key in ITEM_TIMESTAMP_KEYS:
            new = getattr(candidate, key)
            if getattr(existing, key) == new:
                continue
            if authoritative:
                apply_item_change(key, new)
            else:
                setattr(existing, key, new)
                existing.changed_fields.add(key)
        if not authoritative and existing.ino != candidate.ino:
            existing.ino = candidate.ino
            existing.changed_fields.add("ino")

        if existing.is_missing:
            logger.debug(
                'Library item "%s" was missing but now found', existing.rel_path
            )
            apply_item_change("is_missing", False)

        # Files
        matches, removed, added = match_library_files(
            existing.library_files, candidate.library_files, self._policy
        )

        for library_file in removed:
            logger.info(
                'Library file "%s" was removed from library item "%s"',
                library_file.metadata.path,
                existing.rel_path,
            )
        if removed:
            removed_ids = {id(lf) for lf in removed}
            existing.library_files = [
                lf for lf in existing.library_files if id(lf) not in removed_ids
            ]
            result.files_removed = removed
            result.has_changes = True

        for existing_file, scanned_file in matches:
            before = copy.deepcopy(existing_file)
            file_changes = compare_update_library_file(
                existing_file, scanned_file, self._policy, now
            )
            if file_changes:
                result.files_modified.append(
                    FileModification(before=before, after=existing_file)
                )
                result.changes.extend(file_changes)
                result.has_changes = True

        for candidate_file in added:
            logger.info(
                'New library file found with path "%s" for library item "%s"',
                candidate_file.metadata.path,
                existing.rel_path,
            )
            new_file = candidate_file.copy()
            if new_file.is_ebook_file:
                new_file.is_supplementary = True
            existing.library_files.append(new_file)
            result.files_added.append(new_file)
        if added:
            result.has_changes = True

        if result.has_changes:
            existing.size = existing.total_file_size()
            existing.last_scan_at = now
            existing.last_scan_version = self._scanner_version
            existing.changed_fields.update(
                {"size", "last_scan_at", "last_scan_version"}
            )
            if result.has_library_file_changes:
                existing.changed_fields.add("library_files")
            logger.debug(
                'Library item "%s" changed: [%s]',
                existing.rel_path,
                ",".join(sorted(existing.changed_fields)),
            )
            result.state = ReconcileState.CHANGED
        else:
            result.state = ReconcileState.UNCHANGED

        return result
