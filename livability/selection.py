"""Selection state: which town is selected and which theme is active."""

from dataclasses import dataclass, replace
from typing import Optional

from .themes import ThemeId


@dataclass(frozen=True)
class SelectionState:
    """
    The two independent selection axes, each nullable.

    Instances are immutable; the controller swaps in a new state only after
    the lookup that validates the action has succeeded.
    """

    entity_id: Optional[int] = None
    theme_id: Optional[ThemeId] = None

    def with_entity(self, entity_id: int) -> "SelectionState":
        return replace(self, entity_id=entity_id)

    def with_theme(self, theme_id: ThemeId) -> "SelectionState":
        return replace(self, theme_id=theme_id)

    @property
    def is_empty(self) -> bool:
        return self.entity_id is None and self.theme_id is None
