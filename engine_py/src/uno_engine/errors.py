# engine_py/src/uno_engine/errors.py

class GameError(Exception):
    """Room-level precondition failure, reported to the client as a room-error."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")

# Room error codes (mirrored by ws.events.ErrorCode)
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ROOM_FULL = "ROOM_FULL"
ALREADY_STARTED = "ALREADY_STARTED"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
NOT_HOST = "NOT_HOST"
NOT_IN_ROOM = "NOT_IN_ROOM"

def raise_error(code: str, message: str):
    raise GameError(code, message)
