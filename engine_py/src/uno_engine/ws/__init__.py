"""
WebSocket transport for networked UNO rooms.
"""

from .server import create_app, manager, room_manager

__all__ = ["create_app", "manager", "room_manager"]
