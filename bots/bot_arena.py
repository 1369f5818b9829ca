"""Simple bot arena for Stacked."""

from __future__ import annotations

import argparse
import logging
from typing import Callable, Dict, Iterable, Optional, Sequence

from engine.rules_schema import RuleSet
from engine.service import GameService
from engine.turns import DecisionOutcome

from .base import BotStrategy
from .baseline_greedy import GreedyBot
from .evaluator import HeuristicBot
from .random_bot import RandomBot

BOT_REGISTRY: Dict[str, Callable[[Optional[int]], BotStrategy]] = {
    "beginner": lambda seed: HeuristicBot("beginner", seed=seed),
    "intermediate": lambda seed: HeuristicBot("intermediate", seed=seed),
    "legendary": lambda seed: HeuristicBot("legendary", seed=seed),
    "greedy": lambda seed: GreedyBot(),
    "random": lambda seed: RandomBot(seed=seed),
}


def build_strategies(rules: RuleSet, seed: Optional[int] = None) -> Dict[int, BotStrategy]:
    """One heuristic bot per automated seat, using the configured difficulty."""
    strategies: Dict[int, BotStrategy] = {}
    for seat in range(rules.players):
        if seat in rules.human_seats:
            continue
        bot_seed = None if seed is None else seed + seat
        strategies[seat] = HeuristicBot(rules.difficulty_for(seat), seed=bot_seed)
    return strategies


def run_match(
    bots: Sequence[BotStrategy],
    *,
    seed: Optional[int] = None,
    rules: Optional[RuleSet] = None,
    max_steps: int = 100_000,
) -> dict:
    if len(bots) != 3:
        raise ValueError("Exactly three bots are required.")
    base = rules or RuleSet()
    rules = base.model_copy(update={"human_seats": [], "ai_delay": 0.0})
    service = GameService(rules, seed=seed, strategies=dict(enumerate(bots)))
    state = service.new_game()
    for seat, bot in enumerate(bots):
        bot.on_game_start(state)

    events = service.run_until_human(max_steps=max_steps)
    final = service.snapshot()
    rounds = [event for event in events if isinstance(event, DecisionOutcome) and event.new_round]
    jackpots = [
        {"player": event.jackpot.player, "points": event.jackpot.points}
        for event in events
        if isinstance(event, DecisionOutcome) and event.jackpot is not None
    ]
    return {
        "scores": final.scores(),
        "winner": final.winner,
        "game_over": final.game_over,
        "rounds": len(rounds) + 1,
        "jackpots": jackpots,
        "steps": len(events),
    }


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run a three-bot match.")
    parser.add_argument("--bots", nargs=3, default=["intermediate", "greedy", "legendary"], choices=BOT_REGISTRY.keys())
    parser.add_argument("--games", type=int, default=1, help="Number of games to play.")
    parser.add_argument("--target", type=int, default=500, help="Score that ends a game.")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--verbose", action="store_true", help="Log engine transitions.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    rules = RuleSet(target_score=args.target)
    wins = [0, 0, 0]
    for game in range(args.games):
        seed = args.seed + game
        bots = [BOT_REGISTRY[name](seed + seat) for seat, name in enumerate(args.bots)]
        results = run_match(bots, seed=seed, rules=rules)
        if results["winner"] is not None:
            wins[results["winner"]] += 1
        print(f"Game {game + 1}: scores={results['scores']} winner={results['winner']} rounds={results['rounds']}")

    for seat, name in enumerate(args.bots):
        print(f"Seat {seat} ({name}): {wins[seat]}/{args.games} wins")


if __name__ == "__main__":
    main()
