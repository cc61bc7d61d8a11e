"""
Client-side synchronization: push subscription, id mapping and local merge.
"""
from .identity import TableIdMapper
from .records import LocalInsight, LocalNotice, LocalQuestion, LocalTable, LocalTranscript
from .rest import SnapshotClient, reconcile_forever, reconcile_once
from .state import LiveEventState
from .sync import ConnectionState, SyncManager

__all__ = [
    "ConnectionState",
    "LiveEventState",
    "LocalInsight",
    "LocalNotice",
    "LocalQuestion",
    "LocalTable",
    "LocalTranscript",
    "SnapshotClient",
    "SyncManager",
    "TableIdMapper",
    "reconcile_forever",
    "reconcile_once",
]
