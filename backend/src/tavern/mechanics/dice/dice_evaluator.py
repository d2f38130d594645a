"""Dice expression evaluator.

Supports additive chains of dice terms and integer literals:
``1d20``, ``2d6+3``, ``1d20+2d4+5``, ``1d20-1d4``, ``d8+2``.

Terms that do not parse (``2dx``, ``abc``, ``3d0``) are skipped rather than
rejected; they are reported in ``DiceRollResult.skipped`` so callers can warn
about likely typos. Every die outcome is kept in the breakdown, so a stored
roll can be replayed and checked with :func:`replay`.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol

_SIGN_SPLIT_RE = re.compile(r"([+-])")
_DICE_TERM_RE = re.compile(r"^(?P<count>\d*)d(?P<sides>\d+)$", re.IGNORECASE)
_LITERAL_RE = re.compile(r"^\d+$")


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


class DiceReplayError(ValueError):
    """Raised when recorded outcomes do not fit the expression they claim to replay."""


@dataclass
class DiceTerm:
    """One signed term of an expression: a dice group or a literal."""

    expression: str
    sign: int
    rolls: List[int] = field(default_factory=list)
    value: int = 0
    is_dice: bool = False

    @property
    def subtotal(self) -> int:
        return self.sign * self.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expression": self.expression,
            "sign": "+" if self.sign > 0 else "-",
            "kind": "dice" if self.is_dice else "literal",
            "rolls": list(self.rolls),
            "value": self.value,
            "subtotal": self.subtotal,
        }


@dataclass
class DiceRollResult:
    """Total and per-term breakdown of an evaluated expression."""

    expression: str
    total: int
    terms: List[DiceTerm] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def rolls(self) -> List[int]:
        """Every die outcome in evaluation order."""
        return [r for term in self.terms for r in term.rolls]

    def breakdown(self) -> List[Dict[str, Any]]:
        return [term.to_dict() for term in self.terms]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expression": self.expression,
            "total": self.total,
            "breakdown": self.breakdown(),
            "skipped": list(self.skipped),
        }

    def __str__(self) -> str:
        parts = []
        for index, term in enumerate(self.terms):
            sign = "-" if term.sign < 0 else ("+" if index else "")
            if term.is_dice:
                parts.append(f"{sign}{term.expression}[{', '.join(str(r) for r in term.rolls)}]")
            else:
                parts.append(f"{sign}{term.expression}")
        return f"{' '.join(parts) or '0'} = {self.total}"


def _tokenize(expression: str) -> Iterable[tuple]:
    """Yield (sign, term_text) pairs; the last sign seen before a term wins."""
    sign = 1
    for part in _SIGN_SPLIT_RE.split(expression or ""):
        part = part.strip()
        if not part:
            continue
        if part in ("+", "-"):
            sign = 1 if part == "+" else -1
            continue
        yield sign, part.replace(" ", "")
        sign = 1


def evaluate(
    expression: str,
    rng: Optional[RandomSource] = None,
    max_count: Optional[int] = None,
    max_sides: Optional[int] = None,
) -> DiceRollResult:
    """Roll every dice term in ``expression`` and sum the signed terms.

    Args:
        expression: Dice notation, e.g. ``"2d6+1d4-3"``.
        rng: Source of die outcomes (anything with ``randint``). Defaults to
            the ``random`` module.
        max_count: Optional cap on dice per term; larger terms are skipped.
        max_sides: Optional cap on sides per die; larger terms are skipped.

    Returns:
        DiceRollResult with the total and a breakdown of each counted term.
    """
    source = rng or random
    terms: List[DiceTerm] = []
    skipped: List[str] = []

    for sign, text in _tokenize(expression):
        dice_match = _DICE_TERM_RE.match(text)
        if dice_match:
            count = int(dice_match.group("count") or 1)
            sides = int(dice_match.group("sides"))
            if sides < 1:
                skipped.append(text)
                continue
            if (max_count is not None and count > max_count) or (
                max_sides is not None and sides > max_sides
            ):
                skipped.append(text)
                continue
            rolls = [source.randint(1, sides) for _ in range(count)]
            terms.append(
                DiceTerm(
                    expression=f"{count}d{sides}",
                    sign=sign,
                    rolls=rolls,
                    value=sum(rolls),
                    is_dice=True,
                )
            )
        elif _LITERAL_RE.match(text):
            terms.append(DiceTerm(expression=text, sign=sign, value=int(text)))
        else:
            skipped.append(text)

    total = sum(term.subtotal for term in terms)
    return DiceRollResult(expression=expression, total=total, terms=terms, skipped=skipped)


class _RecordedRolls:
    """Random source that replays a fixed list of outcomes."""

    def __init__(self, rolls: Iterable[int]):
        self._rolls = list(rolls)
        self._index = 0

    def randint(self, a: int, b: int) -> int:
        if self._index >= len(self._rolls):
            raise DiceReplayError("Not enough recorded rolls for expression")
        value = self._rolls[self._index]
        self._index += 1
        if not a <= value <= b:
            raise DiceReplayError(f"Recorded roll {value} outside [{a}, {b}]")
        return value

    @property
    def exhausted(self) -> bool:
        return self._index == len(self._rolls)


def replay(
    expression: str,
    rolls: Iterable[int],
    max_count: Optional[int] = None,
    max_sides: Optional[int] = None,
) -> DiceRollResult:
    """Re-evaluate ``expression`` using recorded die outcomes.

    Raises:
        DiceReplayError: If there are too few or too many outcomes, or an
            outcome is impossible for its die.
    """
    source = _RecordedRolls(rolls)
    result = evaluate(expression, rng=source, max_count=max_count, max_sides=max_sides)
    if not source.exhausted:
        raise DiceReplayError("More recorded rolls than the expression uses")
    return result
