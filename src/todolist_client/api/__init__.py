from .client import HttpTodoApi, RemoteOperationError

__all__ = ["HttpTodoApi", "RemoteOperationError"]
