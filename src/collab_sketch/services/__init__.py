from .snapshot_store import FileSnapshotStore, SnapshotStore

__all__ = ["SnapshotStore", "FileSnapshotStore"]
