"""Conversation phase model.

A challenge session moves through four fixed phases:

    provocation -> deep_dive -> synthesis -> output

Phases compare by position in that sequence (not by string value), so
``Phase.PROVOCATION < Phase.SYNTHESIS`` holds. A session's phase never
regresses and moves at most one step at a time.
"""

from enum import Enum


class Phase(str, Enum):
    """Ordered conversation phase."""

    PROVOCATION = "provocation"
    """Challenge the premise and surface hidden assumptions."""

    DEEP_DIVE = "deep_dive"
    """Stress-test specifics: numbers, owners, failure modes."""

    SYNTHESIS = "synthesis"
    """Force trade-offs and a concrete decision."""

    OUTPUT = "output"
    """Terminal: capture the decision and next steps."""

    @property
    def order(self) -> int:
        return _PHASE_ORDER.index(self)

    @property
    def is_terminal(self) -> bool:
        return self is Phase.OUTPUT

    def next(self) -> "Phase":
        """Return the following phase (output stays output)."""
        if self.is_terminal:
            return self
        return _PHASE_ORDER[self.order + 1]

    def __lt__(self, other):
        if not isinstance(other, Phase):
            return NotImplemented
        return self.order < other.order

    def __le__(self, other):
        if not isinstance(other, Phase):
            return NotImplemented
        return self.order <= other.order

    def __gt__(self, other):
        if not isinstance(other, Phase):
            return NotImplemented
        return self.order > other.order

    def __ge__(self, other):
        if not isinstance(other, Phase):
            return NotImplemented
        return self.order >= other.order


_PHASE_ORDER = [Phase.PROVOCATION, Phase.DEEP_DIVE, Phase.SYNTHESIS, Phase.OUTPUT]
