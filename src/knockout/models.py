"""
Data model for knockout brackets.

A slot in a match holds one of:
- Player: a single entrant
- Pair: two entrants playing doubles together
- RawName: a free-text name typed in over a slot during a manual correction
- None: not decided yet
"""
from typing import Dict, List, Optional, Union


# Fixed tag progression, only used to order legacy documents saved without
# an explicit roundOrder. Tags do not sort lexically.
ROUND_TAG_PROGRESSION = [
    'first',
    'round2',
    'round3',
    'round4',
    'round5',
    'round6',
    'round7',
    'round8',
    'round16',
    'quarterfinal',
    'semifinal',
    'final',
]

CATEGORIES = ('singles', 'doubles')


class BracketError(Exception):
    """Base class for bracket errors."""


class RoundNotFoundError(BracketError):
    def __init__(self, round_tag):
        super().__init__(f'Round "{round_tag}" not found')
        self.round_tag = round_tag


class MatchIndexOutOfRangeError(BracketError):
    def __init__(self, round_tag, position):
        super().__init__(f'Match {position} not found in round "{round_tag}"')
        self.round_tag = round_tag
        self.position = position


class InvalidWinnerSelectionError(BracketError):
    """Winner is neither of the match's two slots."""


class BracketConflictError(BracketError):
    """Both slots of a propagation target are already taken by other entrants."""


class Player:
    def __init__(self, id, name, email=None):
        self.id = id
        self.name = name
        self.email = email

    def display_name(self) -> str:
        return self.name or 'UNKNOWN PLAYER'

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name, 'email': self.email}

    def __eq__(self, other):
        return isinstance(other, Player) and other.id == self.id

    def __hash__(self):
        return hash(('player', self.id))

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name})"


class Pair:
    def __init__(self, player1_id, player2_id, player1_name=None, player2_name=None,
                 id=None, is_auto_generated=False):
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.player1_name = player1_name
        self.player2_name = player2_name
        self.id = id or f'{player1_id}&{player2_id}'
        self.is_auto_generated = is_auto_generated

    def display_name(self) -> str:
        return f"{self.player1_name or 'UNKNOWN'} & {self.player2_name or 'UNKNOWN'}"

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'player1Id': self.player1_id,
            'player2Id': self.player2_id,
            'player1Name': self.player1_name,
            'player2Name': self.player2_name,
            'isAutoGenerated': self.is_auto_generated,
        }

    def __eq__(self, other):
        return isinstance(other, Pair) and other.id == self.id

    def __hash__(self):
        return hash(('pair', self.id))

    def __repr__(self):
        return f"Pair(id={self.id}, names={self.display_name()})"


class RawName:
    def __init__(self, text):
        self.text = text

    def display_name(self) -> str:
        return self.text

    def to_dict(self) -> str:
        return self.text

    def __eq__(self, other):
        return isinstance(other, RawName) and other.text == self.text

    def __hash__(self):
        return hash(('raw', self.text))

    def __repr__(self):
        return f"RawName({self.text!r})"


Slot = Optional[Union[Player, Pair, RawName]]


def display_name(slot: Slot) -> str:
    """Display text for any slot value, empty for an undecided slot."""
    if slot is None:
        return ''
    return slot.display_name()


def slot_to_dict(slot: Slot):
    if slot is None:
        return None
    return slot.to_dict()


def parse_slot(value) -> Slot:
    """Read a slot value from its document form."""
    if value is None or value == '':
        return None
    if isinstance(value, str):
        return RawName(value)
    if isinstance(value, dict):
        if 'player1Id' in value and 'player2Id' in value:
            return Pair(
                player1_id=value['player1Id'],
                player2_id=value['player2Id'],
                player1_name=value.get('player1Name'),
                player2_name=value.get('player2Name'),
                id=value.get('id'),
                is_auto_generated=value.get('isAutoGenerated', False),
            )
        if 'id' in value:
            return Player(id=value['id'], name=value.get('name'), email=value.get('email'))
    raise ValueError(f'Unrecognised slot value: {value!r}')


class Match:
    def __init__(self, position, player1=None, player2=None, winner=None, is_bye=False):
        self.position = position
        self.player1 = player1
        self.player2 = player2
        self.winner = winner
        self.is_bye = is_bye

    @property
    def is_playable(self) -> bool:
        return not self.is_bye and self.player1 is not None and self.player2 is not None

    def has_entrant(self, entrant) -> bool:
        return entrant is not None and (self.player1 == entrant or self.player2 == entrant)

    def to_dict(self) -> Dict:
        data = {
            'player1': slot_to_dict(self.player1),
            'player2': slot_to_dict(self.player2),
            'winner': slot_to_dict(self.winner),
        }
        if self.is_bye:
            data['isBye'] = True
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict], position: int) -> 'Match':
        if not data:
            return cls(position)
        return cls(
            position,
            player1=parse_slot(data.get('player1')),
            player2=parse_slot(data.get('player2')),
            winner=parse_slot(data.get('winner')),
            is_bye=bool(data.get('isBye', False)),
        )

    def __repr__(self):
        bye = ', bye' if self.is_bye else ''
        return (f"Match(position={self.position}, {display_name(self.player1) or '-'} vs "
                f"{display_name(self.player2) or '-'}, winner={display_name(self.winner) or '-'}{bye})")


class Round:
    def __init__(self, tag, matches=None, ordinal=0):
        self.tag = tag
        self.matches = matches if matches else []
        self.ordinal = ordinal

    def __len__(self):
        return len(self.matches)

    def __repr__(self):
        return f"Round(tag={self.tag}, ordinal={self.ordinal}, matches={len(self.matches)})"


class Bracket:
    """Ordered rounds of one category, first round through final."""

    def __init__(self, rounds=None, category='singles'):
        self.rounds: List[Round] = rounds if rounds else []
        self.category = category

    @property
    def is_empty(self) -> bool:
        return not self.rounds

    @property
    def round_order(self) -> List[str]:
        return [r.tag for r in self.rounds]

    def round_index(self, round_tag: str) -> int:
        for index, rnd in enumerate(self.rounds):
            if rnd.tag == round_tag:
                return index
        raise RoundNotFoundError(round_tag)

    def get_round(self, round_tag: str) -> Round:
        return self.rounds[self.round_index(round_tag)]

    def get_match(self, round_tag: str, position: int) -> Match:
        rnd = self.get_round(round_tag)
        if position < 0 or position >= len(rnd.matches):
            raise MatchIndexOutOfRangeError(round_tag, position)
        return rnd.matches[position]

    @property
    def first_round(self) -> Optional[Round]:
        return self.rounds[0] if self.rounds else None

    @property
    def final_round(self) -> Optional[Round]:
        return self.rounds[-1] if self.rounds else None

    def to_dict(self) -> Dict:
        if self.is_empty:
            return {}
        data = {}
        for rnd in self.rounds:
            data[rnd.tag] = {'matches': [m.to_dict() for m in rnd.matches]}
        data['roundOrder'] = self.round_order
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict], category: str = 'singles') -> 'Bracket':
        if not data:
            return cls(category=category)

        round_order = data.get('roundOrder')
        if not round_order:
            # Legacy documents: order known tags by the fixed progression
            tags = [key for key in data if key != 'roundOrder']
            round_order = [t for t in ROUND_TAG_PROGRESSION if t in tags]
            round_order += sorted(t for t in tags if t not in ROUND_TAG_PROGRESSION)

        rounds = []
        for ordinal, tag in enumerate(round_order):
            round_data = data.get(tag) or {}
            matches = round_data.get('matches') or []
            rounds.append(Round(
                tag,
                [Match.from_dict(m, position) for position, m in enumerate(matches)],
                ordinal,
            ))
        return cls(rounds, category)

    def __repr__(self):
        return f"Bracket(category={self.category}, rounds={self.round_order})"
