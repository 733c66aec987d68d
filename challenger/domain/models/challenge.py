"""Challenge and turn-outcome models.

Data flow for one submission:
    user text -> CompletionReply (collaborator) -> Challenge (generator)
    -> TurnResult (returned by ConversationSession)
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from challenger.domain.models.persona import PersonaId
from challenger.domain.models.phase import Phase
from challenger.domain.models.turn import ConversationTurn


class Challenge(BaseModel):
    """A persona challenge produced by ChallengeGenerator.

    Attributes:
        text: Styled challenge text (intensity suffix included)
        challenge_type: assumption_challenge, analytical_challenge,
            decision_forcing, action_oriented or generic_challenge
        emotion: Voice emotion cue
        expression: Facial expression cue for the presence collaborator
        should_advance_phase: Transition policy verdict for this history
        pattern_id: "<persona>.<phase>.<index>" or "generic.<index>"
        persona: Persona that issued the challenge
    """

    model_config = ConfigDict(frozen=True)

    text: str
    challenge_type: str
    emotion: str
    expression: str
    should_advance_phase: bool
    pattern_id: str
    persona: PersonaId


class CompletionReply(BaseModel):
    """Raw reply from a completion service.

    transition_hint is advisory only: it is logged and returned, never used
    to move the phase.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    transition_hint: bool = False


class PresenceAck(BaseModel):
    """Acknowledgement from the presence collaborator."""

    model_config = ConfigDict(frozen=True)

    delivered: bool
    detail: str = ""


class TurnResult(BaseModel):
    """Outcome of one user submission.

    Attributes:
        user_turn: Appended user turn (None when transcription failed)
        challenger_turn: Appended challenger turn (None when transcription
            failed)
        reply: Text delivered to the user
        challenge: Persona challenge computed for this exchange
        phase: Session phase after the exchange
        phase_changed: Whether this exchange advanced the phase
        phase_message: Banner for the new phase when it changed
        intensity: Session intensity after the exchange
        degraded: Whether any collaborator fell back
        degraded_services: Names of collaborators that fell back
        transition_hint: Completion service's advisory transition signal
        suggestions: Prompts the user can try next in the current phase
        audio: Synthesized reply audio when voice is enabled
    """

    model_config = ConfigDict(frozen=True)

    user_turn: Optional[ConversationTurn] = None
    challenger_turn: Optional[ConversationTurn] = None
    reply: str
    challenge: Optional[Challenge] = None
    phase: Phase
    phase_changed: bool = False
    phase_message: Optional[str] = None
    intensity: float
    degraded: bool = False
    degraded_services: List[str] = Field(default_factory=list)
    transition_hint: bool = False
    suggestions: List[str] = Field(default_factory=list)
    audio: Optional[bytes] = None
