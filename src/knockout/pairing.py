"""
Doubles pairing.
"""
import logging
import random
from typing import List, Optional, Tuple

from knockout.models import Pair, Player

logger = logging.getLogger(__name__)


class PairingError(Exception):
    """Raised when a pair cannot be formed."""


def paired_player_ids(pairs: List[Pair]) -> set:
    ids = set()
    for pair in pairs:
        ids.add(pair.player1_id)
        ids.add(pair.player2_id)
    return ids


def make_pair(player1: Player, player2: Player, existing_pairs: List[Pair],
              is_auto_generated: bool = False) -> Pair:
    """Pair two players, refusing anyone who already has a partner."""
    if player1.id == player2.id:
        raise PairingError('A player cannot be paired with themselves.')
    already_paired = paired_player_ids(existing_pairs)
    if player1.id in already_paired or player2.id in already_paired:
        raise PairingError('One or both players are already paired.')
    return Pair(
        player1_id=player1.id,
        player2_id=player2.id,
        player1_name=player1.name,
        player2_name=player2.name,
        is_auto_generated=is_auto_generated,
    )


def pair_doubles_players(players: List[Player], pairs: List[Pair],
                         rng: Optional[random.Random] = None) -> Tuple[List[Pair], List[Player]]:
    """
    Complete the doubles draw.

    Manual pairs are kept as they are. Players without a partner are shuffled
    and paired off at random.

    Returns:
        (all pairs, players left without a partner)
    """
    rng = rng or random.Random()
    all_pairs = list(pairs)
    already_paired = paired_player_ids(pairs)

    unpaired = [p for p in players if p.id not in already_paired]
    rng.shuffle(unpaired)

    while len(unpaired) >= 2:
        player1 = unpaired.pop(0)
        player2 = unpaired.pop(0)
        all_pairs.append(make_pair(player1, player2, all_pairs, is_auto_generated=True))

    if unpaired:
        logger.warning("%s has no doubles partner and is left out of the draw", unpaired[0].name)

    return all_pairs, unpaired
