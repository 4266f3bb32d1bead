"""
Recording match results and advancing winners through the bracket.

Matches 0 and 1 of a round feed match 0 of the next round, matches 2 and 3
feed match 1, and so on.
"""
import copy
import logging
from typing import Optional, Tuple

from knockout.models import (
    Bracket,
    BracketConflictError,
    InvalidWinnerSelectionError,
    MatchIndexOutOfRangeError,
    RawName,
    RoundNotFoundError,
    Slot,
    display_name,
)

logger = logging.getLogger(__name__)


def next_match_position(position: int) -> int:
    return position // 2


def propagate(bracket: Bracket, round_tag: str, position: int, winner: Slot,
              strict: bool = False) -> Bracket:
    """
    Advance `winner` of match `position` in `round_tag` into the next round.

    Stale coordinates, the final round and a missing successor are logged
    and ignored. A winner that is not one of the match's slots raises
    InvalidWinnerSelectionError. When both target slots are already held by
    other entrants the winner is dropped with a warning, or
    BracketConflictError is raised in strict mode.
    """
    if winner is None:
        return bracket

    try:
        round_index = bracket.round_index(round_tag)
        source = bracket.get_match(round_tag, position)
    except (RoundNotFoundError, MatchIndexOutOfRangeError) as e:
        logger.warning("Not propagating: %s", e)
        return bracket

    if not source.has_entrant(winner):
        raise InvalidWinnerSelectionError(
            f'"{display_name(winner)}" is not playing in {round_tag} match {position}')

    if round_index + 1 >= len(bracket.rounds):
        logger.info("%s is the last round, nothing to propagate", round_tag)
        return bracket

    next_round = bracket.rounds[round_index + 1]
    next_position = next_match_position(position)
    if next_position >= len(next_round.matches):
        logger.warning("Not propagating: %s has no match %d", next_round.tag, next_position)
        return bracket

    target = next_round.matches[next_position]
    if target.is_bye:
        # Sole input line, the occupant goes straight through
        target.player1 = winner
        target.winner = winner
        logger.info("Propagated %s from %s match %d to bye %s match %d",
                    display_name(winner), round_tag, position, next_round.tag, next_position)
        return propagate(bracket, next_round.tag, next_position, winner, strict)
    elif target.has_entrant(winner):
        return bracket
    elif target.player1 is None:
        target.player1 = winner
    elif target.player2 is None:
        target.player2 = winner
    else:
        message = (f'{next_round.tag} match {next_position} already has '
                   f'{display_name(target.player1)} and {display_name(target.player2)}, '
                   f'dropping {display_name(winner)}')
        if strict:
            raise BracketConflictError(message)
        logger.warning(message)
        return bracket

    logger.info("Propagated %s from %s match %d to %s match %d",
                display_name(winner), round_tag, position, next_round.tag, next_position)
    return bracket


def retract_winner(bracket: Bracket, round_index: int, position: int, old_winner: Slot):
    """Take a previously advanced winner back out of the following rounds."""
    if round_index + 1 >= len(bracket.rounds):
        return
    next_round = bracket.rounds[round_index + 1]
    next_position = next_match_position(position)
    if next_position >= len(next_round.matches):
        return

    target = next_round.matches[next_position]
    if target.player1 == old_winner:
        target.player1 = None
    elif target.player2 == old_winner:
        target.player2 = None
    else:
        return
    logger.info("Removed %s from %s match %d", display_name(old_winner), next_round.tag, next_position)

    if target.winner == old_winner:
        target.winner = None
        retract_winner(bracket, round_index + 1, next_position, old_winner)


def _apply_manual_name(slot: Slot, name: Optional[str]) -> Slot:
    if not name or not name.strip():
        return slot
    name = name.strip()
    if name.lower() == display_name(slot).lower():
        return slot
    return RawName(name)


def _resolve_winner(player1: Slot, player2: Slot, winner_choice) -> Slot:
    if winner_choice in (None, '', 0, '0'):
        return None
    if str(winner_choice) == '1':
        chosen = player1
    elif str(winner_choice) == '2':
        chosen = player2
    else:
        raise InvalidWinnerSelectionError(f'Invalid winner choice: {winner_choice!r}')
    if chosen is None:
        raise InvalidWinnerSelectionError(f'Player {winner_choice} slot is empty')
    return chosen


def record_result(bracket: Bracket, round_tag: str, position: int,
                  manual_names: Optional[Tuple[Optional[str], Optional[str]]] = None,
                  winner_choice=None, strict: bool = False) -> Bracket:
    """
    Save a match result and advance the winner.

    Args:
        bracket: Bracket to update in place
        round_tag: Tag of the round holding the match
        position: Index of the match within the round
        manual_names: Optional (player1, player2) names typed over the slots
        winner_choice: 1 or 2 for the winning slot, None to clear the result
        strict: Raise BracketConflictError instead of dropping a winner

    Returns:
        The updated bracket. On any error the bracket is left untouched.
    """
    match = bracket.get_match(round_tag, position)
    round_index = bracket.round_index(round_tag)

    player1, player2 = match.player1, match.player2
    if manual_names:
        player1 = _apply_manual_name(player1, manual_names[0])
        # A bye has no second line to rename
        if not match.is_bye:
            player2 = _apply_manual_name(player2, manual_names[1])

    winner = _resolve_winner(player1, player2, winner_choice)

    # Work on a copy so a failure leaves the caller's bracket as it was
    working = copy.deepcopy(bracket)
    target = working.rounds[round_index].matches[position]
    target.player1, target.player2 = player1, player2

    previous = target.winner
    target.winner = winner
    if previous is not None and previous != winner:
        retract_winner(working, round_index, position, previous)

    if winner is not None:
        propagate(working, round_tag, position, winner, strict)

    bracket.rounds = working.rounds
    return bracket


def advance_byes(bracket: Bracket) -> Bracket:
    """Record the sole occupant of every first-round bye as its winner."""
    first_round = bracket.first_round
    if first_round is None:
        return bracket
    for match in first_round.matches:
        if match.is_bye and match.player1 is not None and match.winner != match.player1:
            record_result(bracket, first_round.tag, match.position, winner_choice=1)
    return bracket


def replay_results(bracket: Bracket) -> Bracket:
    """
    Rebuild every round after the first from the recorded winners.

    Recorded winners that no longer play in their match after the replay
    are cleared.
    """
    recorded = {}
    for rnd in bracket.rounds[1:]:
        for match in rnd.matches:
            recorded[(rnd.tag, match.position)] = match.winner
            match.player1 = None
            match.player2 = None
            match.winner = None

    for index, rnd in enumerate(bracket.rounds):
        for match in rnd.matches:
            if index > 0 and not match.is_bye:
                winner = recorded.get((rnd.tag, match.position))
                if match.has_entrant(winner):
                    match.winner = winner
                elif winner is not None:
                    logger.warning("Dropping stale winner %s of %s match %d",
                                   display_name(winner), rnd.tag, match.position)
            if match.winner is not None and not match.has_entrant(match.winner):
                logger.warning("Dropping winner %s not playing in %s match %d",
                               display_name(match.winner), rnd.tag, match.position)
                match.winner = None
            if match.winner is not None:
                propagate(bracket, rnd.tag, match.position, match.winner)
    return bracket


def get_champion(bracket: Bracket) -> Slot:
    final_round = bracket.final_round
    if final_round is None or not final_round.matches:
        return None
    return final_round.matches[0].winner
