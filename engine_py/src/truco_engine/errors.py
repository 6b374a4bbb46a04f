# engine_py/src/truco_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
MATCH_FULL = "MATCH_FULL"
MATCH_IN_PROGRESS = "MATCH_IN_PROGRESS"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
ALREADY_SEATED = "ALREADY_SEATED"
NAME_TAKEN = "NAME_TAKEN"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
SEAT_NOT_FOUND = "SEAT_NOT_FOUND"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"
WRONG_PHASE = "WRONG_PHASE"
TRUCO_PENDING = "TRUCO_PENDING"
NO_TRUCO_PENDING = "NO_TRUCO_PENDING"
STAKE_AT_MAXIMUM = "STAKE_AT_MAXIMUM"
ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
