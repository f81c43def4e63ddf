"""
Todo-list client.

Components:
- core/: data structures (TaskRecord, Notification, EditSession), ports, AppState
- api/: async HTTP client for the todo backend
- sync/: optimistic sync controller (local list + detached remote calls)
- notify/: single-slot transient notification emitter
- connectors/, cli/: console presentation, slash commands, entrypoint
"""
