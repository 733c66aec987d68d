"""
Phase transition policy.

A phase closes once the number of turns tagged with it (user and challenger
turns both count) reaches the phase's turn threshold from
challenge_config.yaml: with the default of 4, two exchanges. The output phase
is terminal.

The policy is a pure function of (phase, history): it never looks at reply
wording, so completion-service transition hints cannot move the phase.
"""

from typing import Dict, Optional, Sequence

from challenger.core.config import PhasesConfig, challenge_config
from challenger.domain.models.phase import Phase
from challenger.domain.models.turn import ConversationTurn


class PhaseTransitionPolicy:
    """Fixed-count phase transition policy."""

    def __init__(self, phases_config: Optional[PhasesConfig] = None):
        phases_config = phases_config or challenge_config.phases
        self._thresholds: Dict[Phase, int] = {
            Phase.PROVOCATION: phases_config.provocation.turn_threshold,
            Phase.DEEP_DIVE: phases_config.deep_dive.turn_threshold,
            Phase.SYNTHESIS: phases_config.synthesis.turn_threshold,
        }

    def threshold(self, phase: Phase) -> Optional[int]:
        """Turn threshold for phase (None for the terminal phase)."""
        return self._thresholds.get(phase)

    @staticmethod
    def turns_in_phase(phase: Phase, history: Sequence[ConversationTurn]) -> int:
        return sum(1 for turn in history if turn.phase == phase)

    def should_advance(
        self,
        phase: Phase,
        history: Sequence[ConversationTurn],
        pending_turns: int = 0,
    ) -> bool:
        """Whether the session should leave phase given its history.

        Args:
            phase: Phase being evaluated
            history: Turns recorded so far
            pending_turns: Turns tagged with phase that are about to be
                appended but are not in history yet
        """
        threshold = self.threshold(phase)
        if threshold is None:
            return False
        return self.turns_in_phase(phase, history) + pending_turns >= threshold

    @staticmethod
    def next_phase(phase: Phase) -> Phase:
        return phase.next()
