"""Game constants and utilities"""

from typing import Dict, List

# Face values from weakest to strongest (outside of manilhas).
# The same order, read cyclically, gives the manilha successor of the vira.
FACE_ORDER: List[str] = ['4', '5', '6', '7', 'Q', 'J', 'K', 'A', '2', '3']

# Manilha tiebreak: clubs (zap) > hearts (copas) > spades (espadilha) > diamonds (pica-fumo)
SUITS: List[str] = ['clubs', 'hearts', 'spades', 'diamonds']
SUIT_STRENGTH: Dict[str, int] = {
    'clubs': 4,
    'hearts': 3,
    'spades': 2,
    'diamonds': 1,
}
SUIT_SYMBOLS: Dict[str, str] = {
    'clubs': '♣',
    'hearts': '♥',
    'spades': '♠',
    'diamonds': '♦',
}

HAND_SIZE = 3
MAX_TRICKS = 3
TRICKS_TO_WIN_ROUND = 2
WIN_SCORE = 12

# Oldest game log entries are dropped past this length
GAME_LOG_LIMIT = 200

# Stake ladder: truco, seis, nove, doze
STAKE_LADDER: List[int] = [1, 3, 6, 9, 12]
STAKE_NAMES: Dict[int, str] = {
    3: 'Truco',
    6: 'Seis',
    9: 'Nove',
    12: 'Doze',
}

# Game modes
MODE_1V1 = '1v1'
MODE_2V2 = '2v2'
SEATS_PER_MODE: Dict[str, int] = {
    MODE_1V1: 2,
    MODE_2V2: 4,
}

# Teams
TEAM_A = 'A'
TEAM_B = 'B'

# Match phases
PHASE_WAITING = 'waiting_for_seats'
PHASE_DEALING = 'dealing'
PHASE_PLAYING = 'playing'
PHASE_ROUND_OVER = 'round_over'
PHASE_GAME_OVER = 'game_over'

# Phases in which a dropped connection keeps its seat
STARTED_PHASES = (PHASE_DEALING, PHASE_PLAYING, PHASE_ROUND_OVER, PHASE_GAME_OVER)

# Truco escalation overlay
TRUCO_NONE = 'none'
TRUCO_REQUESTED = 'requested'
TRUCO_ACCEPTED = 'accepted'
TRUCO_DECLINED = 'declined'

# Lobby status labels
STATUS_WAITING = 'waiting'
STATUS_PLAYING = 'playing'
STATUS_FINISHED = 'finished'


def team_for_seat(seat: int) -> str:
    """Seats alternate teams around the table (A, B, A, B)."""
    return TEAM_A if seat % 2 == 0 else TEAM_B


def other_team(team: str) -> str:
    return TEAM_B if team == TEAM_A else TEAM_A
