from .engine import SyncEngine, build_engine
from .store import LocalStateStore, StoreSnapshot

__all__ = [
    "SyncEngine",
    "build_engine",
    "LocalStateStore",
    "StoreSnapshot",
]
