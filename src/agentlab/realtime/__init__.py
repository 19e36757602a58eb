"""Realtime change notifications.

- Observer interface: subscribe(table, filter) -> stream of change events
- Forbidden: persistence, transport concerns
"""
