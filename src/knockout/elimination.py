"""
Single elimination bracket generation.
"""
import logging
import math
import random
from typing import Dict, List, Optional

from knockout.models import Bracket, Match, Round, display_name

logger = logging.getLogger(__name__)

FIRST_ROUND_TAG = 'first'


def get_round_tag(matches_in_round: int, round_number: int) -> str:
    """Get the tag of a round after the first, based on number of matches."""
    if matches_in_round == 1:
        return "final"
    elif matches_in_round == 2:
        return "semifinal"
    elif matches_in_round == 4:
        return "quarterfinal"
    elif matches_in_round == 8:
        return "round16"
    else:
        return f"round{round_number}"


def get_round_display_name(round_tag: str) -> str:
    """Get the heading shown for a round tag."""
    if round_tag == 'final':
        return "FINAL"
    elif round_tag == 'semifinal':
        return "SEMIFINAL"
    elif round_tag == 'quarterfinal':
        return "QUARTERFINAL"
    elif round_tag == 'round16':
        return "ROUND OF 16"
    elif round_tag.startswith('round') and round_tag[5:].isdigit():
        return f"ROUND {int(round_tag[5:])}"
    return "FIRST ROUND"


def calculate_bracket_size(num_entrants: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_entrants <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_entrants))


def calculate_byes(num_entrants: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_entrants)
    return bracket_size - num_entrants


def shuffle_participants(participants: List, rng: Optional[random.Random] = None) -> List:
    """Return a uniformly shuffled copy of the participants.

    A fresh generator is seeded from the OS for every call unless one is passed in.
    """
    rng = rng or random.Random()
    shuffled = list(participants)
    rng.shuffle(shuffled)
    return shuffled


def create_first_round(shuffled: List) -> List[Match]:
    """
    Create first round matches from an already shuffled participant list.

    The first `byes` participants each get a bye match, the rest are paired
    in order. A trailing odd participant also gets a bye.
    """
    byes = calculate_byes(len(shuffled))
    matches = []
    index = 0

    for _ in range(byes):
        matches.append(Match(len(matches), player1=shuffled[index], is_bye=True))
        index += 1

    while index < len(shuffled):
        if index + 1 < len(shuffled):
            matches.append(Match(len(matches), player1=shuffled[index], player2=shuffled[index + 1]))
            index += 2
        else:
            if len(shuffled) > 1:
                logger.warning("Odd participant left after byes, giving %s a bye",
                               display_name(shuffled[index]))
            matches.append(Match(len(matches), player1=shuffled[index], is_bye=True))
            index += 1

    return matches


def create_next_round(previous: List[Match]) -> List[Match]:
    """Empty slots for the round fed by `previous`, two matches per slot."""
    matches = []
    for i in range(0, len(previous), 2):
        # A trailing unpaired match feeds a bye slot
        is_bye = i + 1 >= len(previous)
        matches.append(Match(len(matches), is_bye=is_bye))
    return matches


def build_bracket(participants: List, category: str = 'singles',
                  rng: Optional[random.Random] = None) -> Bracket:
    """
    Build a full knockout bracket for the given participants.

    Returns an empty bracket when there are no participants. Only the first
    round holds participants; later rounds are empty slots filled in as
    results are recorded.
    """
    if not participants:
        logger.info("No %s participants, bracket not generated", category)
        return Bracket(category=category)

    shuffled = shuffle_participants(participants, rng)
    current = create_first_round(shuffled)
    rounds = [Round(FIRST_ROUND_TAG, current, 0)]

    round_number = 1
    while len(current) > 1:
        round_number += 1
        current = create_next_round(current)
        rounds.append(Round(get_round_tag(len(current), round_number), current, len(rounds)))

    bracket = Bracket(rounds, category)
    logger.info("Generated %s bracket for %d participants: %s",
                category, len(participants), bracket.round_order)
    return bracket


def get_bracket_summary(bracket: Bracket) -> Dict:
    """
    Get bracket statistics for display.
    """
    if bracket.is_empty:
        return {
            'category': bracket.category,
            'total_entrants': 0,
            'byes': 0,
            'total_rounds': 0,
            'round_names': {},
            'matches_per_round': {},
            'champion': None,
        }

    first_round = bracket.first_round
    byes = sum(1 for m in first_round.matches if m.is_bye)
    total_entrants = sum(
        1 for m in first_round.matches for slot in (m.player1, m.player2) if slot is not None
    )

    # Count actual matches (non-byes) per round
    matches_per_round = {}
    for rnd in bracket.rounds:
        matches_per_round[rnd.tag] = len([m for m in rnd.matches if not m.is_bye])

    final_match = bracket.final_round.matches[0] if bracket.final_round.matches else None
    champion = final_match.winner if final_match else None

    return {
        'category': bracket.category,
        'total_entrants': total_entrants,
        'byes': byes,
        'total_rounds': len(bracket.rounds),
        'round_names': {rnd.tag: get_round_display_name(rnd.tag) for rnd in bracket.rounds},
        'matches_per_round': matches_per_round,
        'champion': display_name(champion) or None,
    }
