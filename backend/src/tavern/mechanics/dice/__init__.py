"""Dice notation evaluation."""

from tavern.mechanics.dice.dice_evaluator import (
    DiceReplayError,
    DiceRollResult,
    DiceTerm,
    evaluate,
    replay,
)

__all__ = ["DiceReplayError", "DiceRollResult", "DiceTerm", "evaluate", "replay"]
