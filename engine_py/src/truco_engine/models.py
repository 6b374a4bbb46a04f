"""Game models and data structures"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .constants import (
    FACE_ORDER,
    GAME_LOG_LIMIT,
    PHASE_WAITING,
    SEATS_PER_MODE,
    SUITS,
    SUIT_SYMBOLS,
    TRUCO_NONE,
    TRUCO_REQUESTED,
)
from .rules import RuleConfig, default_rules


@dataclass(frozen=True)
class Card:
    face: str  # 4 5 6 7 Q J K A 2 3
    suit: str  # clubs|hearts|spades|diamonds

    @property
    def id(self) -> str:
        return f"{self.face}{self.suit[0].upper()}"

    def __str__(self) -> str:
        return f"{self.face}{SUIT_SYMBOLS.get(self.suit, '?')}"


def parse_card(card_id: str) -> Card:
    """Build a Card from its id, e.g. '5H' or 'QC'."""
    face, initial = card_id[:-1].upper(), card_id[-1:].upper()
    suit = next((s for s in SUITS if s[0].upper() == initial), None)
    if face not in FACE_ORDER or suit is None:
        raise ValueError(f"Invalid card ID format: {card_id}")
    return Card(face=face, suit=suit)


@dataclass(frozen=True)
class Player:
    id: str  # connection identity currently bound to the seat
    name: str
    seat: int
    team: str
    hand: Tuple[Card, ...] = ()
    ready: bool = False
    connected: bool = True


@dataclass(frozen=True)
class PlayedCard:
    player_id: str
    card: Card
    timestamp: float = 0.0


@dataclass(frozen=True)
class MatchState:
    id: str
    mode: str
    version: int = 0
    phase: str = PHASE_WAITING  # waiting_for_seats|dealing|playing|round_over|game_over
    players: Tuple[Player, ...] = ()  # ordered by seat
    current_trick: Tuple[PlayedCard, ...] = ()
    tricks: Tuple[Tuple[PlayedCard, ...], ...] = ()  # completed tricks this round
    trick_winners: Tuple[str, ...] = ()  # team that took each completed trick
    vira: Optional[Card] = None
    team_a_score: int = 0
    team_b_score: int = 0
    stake: int = 1
    dealer: Optional[str] = None
    turn: Optional[str] = None
    truco_status: str = TRUCO_NONE
    truco_requested_by: Optional[str] = None
    round_winner: Optional[str] = None
    winner: Optional[str] = None
    game_log: Tuple[str, ...] = ()
    rule_config: RuleConfig = field(default=default_rules)

    @property
    def required_seats(self) -> int:
        return SEATS_PER_MODE[self.mode]

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.required_seats

    @property
    def truco_pending(self) -> bool:
        return self.truco_status == TRUCO_REQUESTED

    @property
    def connected_count(self) -> int:
        return sum(1 for p in self.players if p.connected)

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_player_by_name(self, name: str) -> Optional[Player]:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def team_of(self, player_id: Optional[str]) -> Optional[str]:
        player = self.get_player(player_id)
        return player.team if player else None

    def next_player_id(self, player_id: Optional[str]) -> Optional[str]:
        """Seat immediately after the given one, wrapping around the table."""
        if not self.players:
            return None
        index = next((i for i, p in enumerate(self.players) if p.id == player_id), -1)
        return self.players[(index + 1) % len(self.players)].id

    def replace_player(self, player: Player) -> Tuple[Player, ...]:
        return tuple(player if p.seat == player.seat else p for p in self.players)

    def log(self, message: str, **changes) -> 'MatchState':
        """Return a copy with the message appended to the game log and any field changes applied."""
        game_log = (self.game_log + (message,))[-GAME_LOG_LIMIT:]
        return replace(self, game_log=game_log, **changes)
