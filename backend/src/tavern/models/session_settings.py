"""SessionSettings data model - per-session capacity and visibility policy."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from tavern.errors import ValidationFailedError


class DiceVisibility(str, Enum):
    """Who receives diceRolled events."""
    PUBLIC = "public"    # everyone subscribed to the session
    PRIVATE = "private"  # the roller and the session owner only


@dataclass
class SessionSettings:
    """Settings stored with each session."""
    max_participants: int = 6
    allow_spectators: bool = True
    dice_visibility: str = DiceVisibility.PUBLIC.value

    def __post_init__(self):
        if not isinstance(self.max_participants, int) or self.max_participants < 1:
            raise ValidationFailedError("max_participants must be a positive integer")
        if self.dice_visibility not in {v.value for v in DiceVisibility}:
            raise ValidationFailedError(
                f"dice_visibility must be one of: {', '.join(v.value for v in DiceVisibility)}"
            )

    @property
    def dice_rolls_public(self) -> bool:
        return self.dice_visibility == DiceVisibility.PUBLIC.value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        defaults: Optional["SessionSettings"] = None,
    ) -> "SessionSettings":
        """Build settings from stored/requested values, filling gaps from ``defaults``."""
        base = defaults or cls()
        data = data or {}
        return cls(
            max_participants=data.get("max_participants", base.max_participants),
            allow_spectators=bool(data.get("allow_spectators", base.allow_spectators)),
            dice_visibility=data.get("dice_visibility", base.dice_visibility),
        )
