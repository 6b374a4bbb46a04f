"""
Card shuffling and dealing utilities.
"""

import random
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import FACE_ORDER, HAND_SIZE, SUITS
from .models import Card


def create_deck() -> List[Card]:
    """Create the 40-card Truco deck (no 8s, 9s or 10s)."""
    deck = []

    for suit in SUITS:
        for face in FACE_ORDER:
            deck.append(Card(face=face, suit=suit))

    return deck


def shuffle_deck(deck: Sequence[Card], seed: Optional[int] = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.

    random.shuffle is a Fisher-Yates shuffle, so every permutation is
    equally likely.

    Args:
        deck: Cards to shuffle
        seed: Optional seed for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = list(deck)

    if seed is not None:
        # Use deterministic shuffling with seed
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        # Use system random
        random.shuffle(deck_copy)

    return deck_copy


def deal_cards(
    deck: List[Card],
    player_ids: Sequence[str],
    hand_size: int = HAND_SIZE
) -> Tuple[Dict[str, Tuple[Card, ...]], Card]:
    """
    Deal hands to every player and turn up the vira.

    Args:
        deck: Shuffled deck; it is not modified
        player_ids: Players in table order
        hand_size: Cards per player

    Returns:
        Tuple of (hands by player id, vira)
    """
    needed = hand_size * len(player_ids) + 1
    if len(deck) < needed:
        raise ValueError(f"Deck has {len(deck)} cards, {needed} needed")

    hands = {
        player_id: tuple(deck[i * hand_size:(i + 1) * hand_size])
        for i, player_id in enumerate(player_ids)
    }
    vira = deck[hand_size * len(player_ids)]

    return hands, vira
