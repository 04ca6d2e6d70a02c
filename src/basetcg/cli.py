from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from basetcg.engine.ai import AIProfile, ai_play_match
from basetcg.engine.match import new_match
from basetcg.paths import get_paths
from basetcg.services.content import ContentService
from basetcg.services.telemetry import TelemetryService


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="basetcg", description="Play headless AI-vs-AI matches.")
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--seed", type=int, default=0, help="seed of the first game; later games add 1 each")
    parser.add_argument("--deck0", default="fire")
    parser.add_argument("--deck1", default="water")
    parser.add_argument("--difficulty", type=int, default=1, choices=(0, 1, 2))
    parser.add_argument("--max-turns", type=int, default=200)
    parser.add_argument("--telemetry", type=Path, default=None, help="append match logs to this JSONL file")
    args = parser.parse_args(argv)

    paths = get_paths()
    content = ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)
    db = content.load_cards_db()
    decks = content.load_decks(db)
    for name in (args.deck0, args.deck1):
        if name not in decks:
            parser.error(f"unknown deck {name!r} (choose from {', '.join(sorted(decks))})")

    telemetry = TelemetryService(args.telemetry) if args.telemetry is not None else None
    profile = AIProfile(difficulty=args.difficulty)
    wins = [0, 0]
    for game in range(args.games):
        seed = args.seed + game
        state = new_match(db, decks[args.deck0], decks[args.deck1], seed, names=(args.deck0, args.deck1))
        winner = ai_play_match(state, profile, max_turns=args.max_turns)
        if winner is None:
            print(f"game {game} (seed {seed}): no winner after {state.turn_number} turns")
        else:
            wins[winner] += 1
            print(f"game {game} (seed {seed}): {state.players[winner].name} won on turn {state.turn_number}")
        if telemetry is not None:
            telemetry.log_entries(state.log, game=game, seed=seed)
            telemetry.log("match_result", {"game": game, "seed": seed, "winner": winner, "turns": state.turn_number})

    print(f"{args.deck0}: {wins[0]}  {args.deck1}: {wins[1]}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
