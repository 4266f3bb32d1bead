"""
Tests for doubles pairing.
"""
import random
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from knockout.pairing import PairingError, make_pair, pair_doubles_players, paired_player_ids
from conftest import make_players


class TestMakePair:
    """Tests for pairing two players."""

    def test_make_pair(self):
        a, b = make_players(2)
        pair = make_pair(a, b, [])
        assert pair.player1_id == a.id
        assert pair.player2_id == b.id
        assert pair.display_name() == "A & B"
        assert pair.is_auto_generated is False

    def test_already_paired(self):
        a, b, c = make_players(3)
        existing = [make_pair(a, b, [])]
        with pytest.raises(PairingError):
            make_pair(c, a, existing)

    def test_pair_with_self(self):
        a = make_players(1)[0]
        with pytest.raises(PairingError):
            make_pair(a, a, [])


class TestPairDoublesPlayers:
    """Tests for completing the doubles draw."""

    def test_manual_pairs_kept(self):
        players = make_players(4)
        manual = [make_pair(players[0], players[3], [])]
        pairs, leftover = pair_doubles_players(players, manual, random.Random(3))
        assert pairs[0] is manual[0]
        assert len(pairs) == 2
        assert leftover == []
        assert pairs[1].is_auto_generated
        assert {pairs[1].player1_id, pairs[1].player2_id} == {"p1", "p2"}

    def test_everyone_paired_once(self):
        players = make_players(10)
        pairs, leftover = pair_doubles_players(players, [], random.Random(3))
        assert len(pairs) == 5
        assert paired_player_ids(pairs) == {p.id for p in players}

    def test_odd_player_left_out(self):
        players = make_players(5)
        pairs, leftover = pair_doubles_players(players, [], random.Random(3))
        assert len(pairs) == 2
        assert len(leftover) == 1
        assert leftover[0].id not in paired_player_ids(pairs)

    def test_no_players(self):
        assert pair_doubles_players([], []) == ([], [])
