from .emitter import NotificationEmitter

__all__ = ["NotificationEmitter"]
