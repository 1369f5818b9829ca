"""Bot strategies for Stacked."""

from .baseline_greedy import GreedyBot
from .evaluator import HeuristicBot
from .random_bot import RandomBot

__all__ = ["GreedyBot", "HeuristicBot", "RandomBot"]
