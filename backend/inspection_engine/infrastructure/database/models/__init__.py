from .draft_snapshot import DraftSnapshotModel

__all__ = ["DraftSnapshotModel"]
