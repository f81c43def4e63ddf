from .controller import SyncController

__all__ = ["SyncController"]
