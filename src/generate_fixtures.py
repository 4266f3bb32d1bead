import argparse
import json
import logging
import random
import sys
import yaml
from knockout.models import Pair, Player, display_name
from knockout.elimination import build_bracket, get_round_display_name


def load_participants(file_path, category):
    """
    Load entrants from a draw file.

    singles is a list of names, doubles a list of two-name lists:

        singles: [Alice, Bob, Carol]
        doubles: [[Alice, Bob], [Carol, Dave]]

    Raises ValueError naming the offending entry when the file does not
    have this shape.
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{file_path}: expected a mapping of categories to entrants")

    entries = data.get(category) or []
    if not isinstance(entries, list):
        raise ValueError(f"{file_path}: {category} must be a list")

    participants = []
    for index, entry in enumerate(entries):
        if category == 'singles':
            participants.append(Player(id=f'p{index + 1}', name=str(entry)))
        else:
            if not isinstance(entry, list) or len(entry) != 2:
                raise ValueError(f"{file_path}: doubles entry {index + 1} must list two names, got {entry!r}")
            name1, name2 = entry
            participants.append(Pair(str(name1), str(name2), player1_name=str(name1), player2_name=str(name2)))
    return participants


def format_bracket(bracket):
    lines = []
    for rnd in bracket.rounds:
        if lines:
            lines.append('')
        lines.append(f"# {get_round_display_name(rnd.tag)}")
        for match in rnd.matches:
            player1 = display_name(match.player1) or 'TBD'
            if match.is_bye:
                lines.append(f"{match.position + 1}. {player1} (bye)")
            else:
                player2 = display_name(match.player2) or 'TBD'
                lines.append(f"{match.position + 1}. {player1} vs {player2}")
    return '\n'.join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Draw a knockout bracket from a YAML file of entrants.')
    parser.add_argument('draw_file', help='YAML file with singles and/or doubles entrants')
    parser.add_argument('--category', choices=['singles', 'doubles'], default='singles')
    parser.add_argument('--seed', type=int, help='Seed the shuffle for a reproducible draw')
    parser.add_argument('--json', action='store_true', help='Print the bracket document as JSON')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')

    try:
        participants = load_participants(args.draw_file, args.category)
    except (ValueError, yaml.YAMLError) as e:
        print(f"Invalid draw file: {e}", file=sys.stderr)
        return 1
    if not participants:
        print(f"No {args.category} entrants in {args.draw_file}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    bracket = build_bracket(participants, args.category, rng)

    if args.json:
        print(json.dumps(bracket.to_dict(), indent=2))
    else:
        print(format_bracket(bracket))
    return 0


if __name__ == '__main__':
    sys.exit(main())
