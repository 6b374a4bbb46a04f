"""
Card strength comparison under the rotating manilha rule.
"""

from typing import List, Optional, Sequence

from .constants import FACE_ORDER, SUIT_STRENGTH
from .models import Card, PlayedCard


def get_manilha_face(vira: Optional[Card]) -> Optional[str]:
    """
    Get the face value that is trump for the round.

    The manilha is the face that follows the vira in FACE_ORDER,
    wrapping from 3 back to 4.
    """
    if vira is None:
        return None
    index = FACE_ORDER.index(vira.face)
    return FACE_ORDER[(index + 1) % len(FACE_ORDER)]


def is_manilha(card: Card, vira: Optional[Card]) -> bool:
    """Check if a card is one of the four trumps for this vira."""
    manilha_face = get_manilha_face(vira)
    return manilha_face is not None and card.face == manilha_face


def manilha_rank(card: Card, vira: Optional[Card]) -> int:
    """Suit rank of a manilha (clubs 4 ... diamonds 1), or 0 for a plain card."""
    if not is_manilha(card, vira):
        return 0
    return SUIT_STRENGTH[card.suit]


def get_card_strength(card: Card, vira: Optional[Card]) -> int:
    """
    Absolute strength of a card for the given vira.

    Every card in the deck gets a distinct value: manilhas sit above all
    plain cards, and the suit breaks ties between equal faces.
    """
    suit_strength = SUIT_STRENGTH[card.suit]
    if is_manilha(card, vira):
        return 100 + suit_strength
    return FACE_ORDER.index(card.face) * 10 + suit_strength


def compare_cards(card_a: Card, card_b: Card, vira: Optional[Card]) -> int:
    """
    Compare two cards.

    Returns:
        < 0 if card_a loses to card_b
        0 if both are the same card
        > 0 if card_a beats card_b
    """
    return get_card_strength(card_a, vira) - get_card_strength(card_b, vira)


def is_stronger(card_a: Card, card_b: Card, vira: Optional[Card]) -> bool:
    """Check if card_a beats card_b."""
    return compare_cards(card_a, card_b, vira) > 0


def determine_trick_winner(played: Sequence[PlayedCard], vira: Optional[Card]) -> str:
    """Get the id of the player whose card takes the trick."""
    if not played:
        raise ValueError("Cannot determine the winner of an empty trick")

    best = max(played, key=lambda entry: get_card_strength(entry.card, vira))
    return best.player_id


def sort_cards(cards: Sequence[Card], vira: Optional[Card], reverse: bool = False) -> List[Card]:
    """Sort cards from weakest to strongest for this vira."""
    return sorted(cards, key=lambda c: get_card_strength(c, vira), reverse=reverse)
