"""shelfscan: media probing, probe caching and scan reconciliation for
file-backed audiobook and music libraries on slow or unreliable storage."""

__version__ = "0.1.0"
