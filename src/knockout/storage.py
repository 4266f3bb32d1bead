"""
YAML file stores for participants and bracket documents.
"""
import logging
import os
import uuid
from datetime import datetime
from typing import Dict, List, Optional

import yaml
from filelock import FileLock

from knockout.models import CATEGORIES, Bracket, Pair, Player, parse_slot
from knockout.pairing import make_pair, pair_doubles_players

logger = logging.getLogger(__name__)


def _check_category(category: str):
    if category not in CATEGORIES:
        raise ValueError(f'Unknown category "{category}", expected one of {", ".join(CATEGORIES)}')


class RegistrationClosedError(ValueError):
    """Raised when a player registers while registration is closed."""


class ParticipantStore:
    """Registered players and doubles pairs, kept in players.yaml."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        self.path = os.path.join(data_dir, 'players.yaml')
        self.lock = FileLock(os.path.join(data_dir, '.players.lock'), timeout=10)

    def _load(self) -> Dict:
        if not os.path.exists(self.path):
            return {'registration_open': True, 'players': [], 'pairs': []}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if not data:
            return {'registration_open': True, 'players': [], 'pairs': []}
        data.setdefault('registration_open', True)
        data.setdefault('players', [])
        data.setdefault('pairs', [])
        return data

    def _save(self, data: Dict):
        with open(self.path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False)

    def is_registration_open(self) -> bool:
        return bool(self._load()['registration_open'])

    def set_registration_open(self, is_open: bool) -> bool:
        with self.lock:
            data = self._load()
            data['registration_open'] = bool(is_open)
            self._save(data)
        logger.info("Registration %s", 'opened' if is_open else 'closed')
        return bool(is_open)

    def load_players(self) -> List[Dict]:
        return self._load()['players']

    def get_player(self, player_id: str) -> Optional[Dict]:
        return next((p for p in self.load_players() if p['id'] == player_id), None)

    def register_player(self, name: str, email: str = '', in_singles: bool = True,
                        in_doubles: bool = False) -> Dict:
        """
        Register a player, or add categories to the player already
        registered under the same email.
        """
        name = (name or '').strip()
        email = (email or '').strip()
        if not name:
            raise ValueError('Player name is required.')
        if not in_singles and not in_doubles:
            raise ValueError('Choose at least one category.')

        with self.lock:
            data = self._load()
            if not data['registration_open']:
                raise RegistrationClosedError('Registration is currently closed.')

            existing = None
            if email:
                existing = next((p for p in data['players']
                                 if (p.get('email') or '').lower() == email.lower()), None)
            if existing is not None:
                existing['inSingles'] = bool(existing.get('inSingles')) or bool(in_singles)
                existing['inDoubles'] = bool(existing.get('inDoubles')) or bool(in_doubles)
                existing['updatedAt'] = datetime.now().isoformat(timespec='seconds')
                self._save(data)
                logger.info("Updated categories of %s (%s)", existing['name'], existing['id'])
                return existing

            record = {
                'id': uuid.uuid4().hex,
                'name': name,
                'email': email,
                'inSingles': bool(in_singles),
                'inDoubles': bool(in_doubles),
                'registeredAt': datetime.now().isoformat(timespec='seconds'),
            }
            data['players'].append(record)
            self._save(data)
        logger.info("Registered player %s (%s)", name, record['id'])
        return record

    def remove_player(self, player_id: str) -> bool:
        """Remove a player and any pair they belong to."""
        with self.lock:
            data = self._load()
            players = [p for p in data['players'] if p['id'] != player_id]
            if len(players) == len(data['players']):
                return False
            data['players'] = players
            data['pairs'] = [
                pair for pair in data['pairs']
                if player_id not in (pair.get('player1Id'), pair.get('player2Id'))
            ]
            self._save(data)
        logger.info("Removed player %s", player_id)
        return True

    def get_pairs(self) -> List[Pair]:
        """Stored pairs, with names taken from the current player records."""
        data = self._load()
        names = {p['id']: p.get('name') for p in data['players']}
        pairs = []
        for pair_data in data['pairs']:
            pair = parse_slot(pair_data)
            pair.player1_name = names.get(pair.player1_id, pair.player1_name)
            pair.player2_name = names.get(pair.player2_id, pair.player2_name)
            pairs.append(pair)
        return pairs

    def pair_players(self, player1_id: str, player2_id: str) -> Pair:
        with self.lock:
            data = self._load()
            by_id = {p['id']: p for p in data['players']}
            if player1_id not in by_id or player2_id not in by_id:
                raise ValueError('Both players must be registered.')

            existing = [parse_slot(p) for p in data['pairs']]
            pair = make_pair(_to_player(by_id[player1_id]), _to_player(by_id[player2_id]), existing)

            by_id[player1_id]['inDoubles'] = True
            by_id[player2_id]['inDoubles'] = True
            data['pairs'].append(pair.to_dict())
            self._save(data)
        logger.info("Paired %s", pair.display_name())
        return pair

    def entrants(self, category: str, rng=None) -> List:
        """
        Participants for a category.

        Singles entrants are players; doubles entrants are the stored pairs
        plus random pairs formed from unpaired doubles players.
        """
        _check_category(category)
        players = self.load_players()
        if category == 'singles':
            return [_to_player(p) for p in players if p.get('inSingles')]

        doubles_players = [_to_player(p) for p in players if p.get('inDoubles')]
        pairs, _ = pair_doubles_players(doubles_players, self.get_pairs(), rng)
        return pairs


def _to_player(record: Dict) -> Player:
    return Player(id=record['id'], name=record.get('name'), email=record.get('email'))


class BracketStore:
    """Bracket documents, one YAML file per category under brackets/."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        self.brackets_dir = os.path.join(data_dir, 'brackets')
        self.lock = FileLock(os.path.join(data_dir, '.brackets.lock'), timeout=10)

    def _path(self, category: str) -> str:
        _check_category(category)
        return os.path.join(self.brackets_dir, f'{category}.yaml')

    def load_document(self, category: str) -> Dict:
        path = self._path(category)
        if not os.path.exists(path):
            return {}
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return data if data else {}

    def load(self, category: str) -> Bracket:
        return Bracket.from_dict(self.load_document(category), category)

    def save(self, bracket: Bracket):
        path = self._path(bracket.category)
        with self.lock:
            os.makedirs(self.brackets_dir, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(bracket.to_dict(), f, default_flow_style=False, sort_keys=False)

    def delete(self, category: str):
        path = self._path(category)
        with self.lock:
            if os.path.exists(path):
                os.remove(path)

    def reset(self):
        for category in CATEGORIES:
            self.delete(category)
        logger.info("Brackets reset")
