"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, List, Optional

from .comparator import get_manilha_face, is_manilha, manilha_rank
from .constants import (
    PHASE_GAME_OVER,
    PHASE_WAITING,
    STATUS_FINISHED,
    STATUS_PLAYING,
    STATUS_WAITING,
)
from .models import Card, MatchState, PlayedCard


def serialize_card(card: Card, vira: Optional[Card] = None) -> Dict[str, Any]:
    return {
        "id": card.id,
        "face": card.face,
        "suit": card.suit,
        "is_manilha": is_manilha(card, vira),
        "rank": manilha_rank(card, vira),
    }


def _serialize_trick(trick, vira: Optional[Card]) -> List[Dict[str, Any]]:
    return [_serialize_played(entry, vira) for entry in trick]


def _serialize_played(entry: PlayedCard, vira: Optional[Card]) -> Dict[str, Any]:
    return {
        "player_id": entry.player_id,
        "card": serialize_card(entry.card, vira),
        "timestamp": entry.timestamp,
    }


def sanitize_state(state: MatchState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the snapshot sent to one connection.

    Args:
        state: Match state to serialize
        viewer_id: Player the snapshot is for; only their hand is revealed

    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    vira = state.vira
    players = []
    for player in state.players:
        sanitized_player = {
            "id": player.id,
            "name": player.name,
            "seat": player.seat,
            "team": player.team,
            "ready": player.ready,
            "connected": player.connected,
            "is_dealer": player.id == state.dealer,
            "is_turn": player.id == state.turn,
            "hand_count": len(player.hand),
        }

        # Show full hand only to the viewer
        if player.id == viewer_id:
            sanitized_player["hand"] = [serialize_card(c, vira) for c in player.hand]

        players.append(sanitized_player)

    tail = state.rule_config.game_log_tail
    return {
        "id": state.id,
        "mode": state.mode,
        "version": state.version,
        "viewer_id": viewer_id,
        "phase": state.phase,
        "players": players,
        "current_trick": _serialize_trick(state.current_trick, vira),
        "tricks": [_serialize_trick(trick, vira) for trick in state.tricks],
        "trick_winners": list(state.trick_winners),
        "vira": serialize_card(vira, vira) if vira else None,
        "manilha": get_manilha_face(vira),
        "scores": {"A": state.team_a_score, "B": state.team_b_score},
        "stake": state.stake,
        "dealer": state.dealer,
        "turn": state.turn,
        "truco": {
            "status": state.truco_status,
            "requested_by": state.truco_requested_by,
        },
        "round_winner": state.round_winner,
        "winner": state.winner,
        "game_log": list(state.game_log[-tail:]) if tail else [],
    }


def get_match_status(state: MatchState) -> str:
    if state.phase == PHASE_WAITING:
        return STATUS_WAITING
    if state.phase == PHASE_GAME_OVER:
        return STATUS_FINISHED
    return STATUS_PLAYING


def get_public_match_info(state: MatchState) -> Dict[str, Any]:
    """Get public information about a match for lobby listings."""
    return {
        "id": state.id,
        "mode": state.mode,
        "status": get_match_status(state),
        "player_count": len(state.players),
        "max_players": state.required_seats,
        "players": [
            {"name": p.name, "team": p.team, "connected": p.connected}
            for p in state.players
        ],
    }
