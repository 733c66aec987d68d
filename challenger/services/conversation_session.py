"""
Conversation session: per-user challenge state and turn sequencing.

One submission runs:
    1. Append the user turn (tagged with the current phase)
    2. Raise intensity on engagement markers
    3. Persona challenge + transition verdict (ChallengeGenerator, which
       falls back to a generic challenge when the phase has no patterns)
    4. Completion service reply (canned per-phase reply on failure)
    5. Append the challenger turn (same phase tag as the user turn)
    6. Advance the phase if the verdict says so
    7. Speech synthesis and avatar delivery, when configured

Collaborator failures never abort a submission: they are logged and
reported through TurnResult.degraded / degraded_services.

A session is single-writer: hosts must serialize calls per session.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Union
from uuid import uuid4

import structlog

from challenger.core.config import ChallengeConfig, challenge_config
from challenger.core.exceptions import (
    ConfigurationError,
    NoPatternsForPhaseError,
    SessionNotStartedError,
    ValidationError,
)
from challenger.core.persona_loader import PersonaCatalog, get_persona_catalog
from challenger.domain.models.challenge import Challenge, TurnResult
from challenger.domain.models.document import Document
from challenger.domain.models.persona import PersonaDefinition, PersonaId
from challenger.domain.models.phase import Phase
from challenger.domain.models.session import (
    IntensityFeedback,
    OrgContext,
    SessionSummary,
    UserContext,
)
from challenger.domain.models.turn import ConversationTurn, Speaker
from challenger.llm.prompts.challenger import (
    TRANSCRIPTION_FAILURE_REPLY,
    get_challenger_system_prompt,
    get_fallback_reply,
    get_phase_message,
    get_suggestions,
)
from challenger.services.challenge_generator import ChallengeGenerator
from challenger.services.document_synthesizer import DocumentSynthesizer
from challenger.services.phase_policy import PhaseTransitionPolicy
from challenger.services.protocols import (
    ICompletionService,
    IPresenceService,
    IVoiceService,
)

log = structlog.get_logger(__name__)


class ConversationSession:
    """Challenge conversation between one user and one persona."""

    def __init__(
        self,
        personas: Optional[PersonaCatalog] = None,
        generator: Optional[ChallengeGenerator] = None,
        synthesizer: Optional[DocumentSynthesizer] = None,
        completion: Optional[ICompletionService] = None,
        voice: Optional[IVoiceService] = None,
        presence: Optional[IPresenceService] = None,
        synthesize_speech: bool = False,
        transcript_validator: Optional[Callable[[str], str]] = None,
        config: Optional[ChallengeConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            personas: Persona catalog (shared catalog if None)
            generator: Challenge generator
            synthesizer: Document synthesizer
            completion: Completion service (persona challenge text is the
                reply when None)
            voice: Voice service for transcription and synthesis
            presence: Presence service for avatar delivery
            synthesize_speech: Synthesize replies with the voice service
            transcript_validator: Cleans a voice transcript or raises
                ValidationError (transcripts are used as-is when None)
            config: Challenge configuration
            clock: Time source for turn durations
        """
        self.config = config or challenge_config
        self.personas = personas or get_persona_catalog()
        self.policy = PhaseTransitionPolicy(self.config.phases)
        self.generator = generator or ChallengeGenerator(
            policy=self.policy, intensity_config=self.config.intensity
        )
        self.synthesizer = synthesizer or DocumentSynthesizer()
        self.completion = completion
        self.voice = voice
        self.presence = presence
        self.synthesize_speech = synthesize_speech
        self.transcript_validator = transcript_validator
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self._reset()

    def _reset(self) -> None:
        self._id: Optional[str] = None
        self._persona: Optional[PersonaDefinition] = None
        self._phase = Phase.PROVOCATION
        self._intensity = self.config.intensity.initial
        self._history: List[ConversationTurn] = []
        self._created_at: Optional[datetime] = None
        self._user_context = UserContext()
        self._org_context = OrgContext()
        self._document_type: Optional[str] = None
        self._challenges_issued = 0

    # ==========================================================================
    # Read accessors
    # ==========================================================================

    @property
    def is_started(self) -> bool:
        return self._id is not None

    @property
    def id(self) -> str:
        self._require_started()
        return self._id

    @property
    def persona(self) -> PersonaDefinition:
        self._require_started()
        return self._persona

    @property
    def phase(self) -> Phase:
        self._require_started()
        return self._phase

    @property
    def intensity(self) -> float:
        self._require_started()
        return self._intensity

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        self._require_started()
        return tuple(self._history)

    @property
    def document_type(self) -> str:
        self._require_started()
        return self._document_type

    def _require_started(self) -> None:
        if self._id is None:
            raise SessionNotStartedError("Session has not been started")

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def start(
        self,
        persona_id: Union[PersonaId, str],
        user_context: Optional[UserContext] = None,
        org_context: Optional[OrgContext] = None,
        document_type: Optional[str] = None,
    ) -> str:
        """
        Start (or restart) the session.

        Args:
            persona_id: Persona to challenge as
            user_context: Who the user is
            org_context: The user's organization
            document_type: Override for the persona's default document type

        Returns:
            New session id

        Raises:
            UnknownPersonaError: If the persona is not in the catalog
            UnknownDocumentTemplateError: If document_type has no template
        """
        persona = self.personas.get(persona_id)
        resolved_type = document_type or persona.document_type
        self.synthesizer.templates.get(resolved_type)

        if self.is_started:
            log.info("session_restarted", previous_session_id=self._id)

        self._reset()
        self._id = str(uuid4())
        self._persona = persona
        self._user_context = user_context or UserContext()
        self._org_context = org_context or OrgContext()
        self._document_type = resolved_type
        self._created_at = self.clock()

        log.info(
            "session_started",
            session_id=self._id,
            persona=persona.id.value,
            document_type=resolved_type,
            intensity=self._intensity,
        )
        return self._id

    def end(self) -> None:
        """Discard all session state. Safe to call more than once."""
        if self._id is None:
            return
        log.info(
            "session_ended",
            session_id=self._id,
            turns=len(self._history),
            final_phase=self._phase.value,
        )
        self._reset()

    # ==========================================================================
    # Intensity
    # ==========================================================================

    def _clamp_intensity(self, value: float) -> float:
        bounds = self.config.intensity
        return round(min(max(value, bounds.minimum), bounds.maximum), 2)

    def _bump_on_engagement(self, text: str) -> None:
        lowered = text.lower()
        markers = self.config.intensity.engagement_markers
        if any(marker in lowered for marker in markers):
            previous = self._intensity
            self._intensity = self._clamp_intensity(
                self._intensity + self.config.intensity.engagement_step
            )
            if self._intensity != previous:
                log.debug(
                    "intensity_raised_on_engagement",
                    session_id=self._id,
                    intensity=self._intensity,
                )

    def adjust_intensity(self, feedback: Union[IntensityFeedback, str]) -> float:
        """
        Apply user feedback to the challenge intensity.

        Returns:
            New intensity

        Raises:
            SessionNotStartedError: Before start
            ValidationError: If feedback is not a known value
        """
        self._require_started()
        try:
            feedback = IntensityFeedback(feedback)
        except ValueError:
            raise ValidationError(f"Unknown intensity feedback: {feedback!r}") from None

        step = self.config.intensity.feedback_step
        delta = -step if feedback == IntensityFeedback.TOO_INTENSE else step
        self._intensity = self._clamp_intensity(self._intensity + delta)

        log.info(
            "intensity_adjusted",
            session_id=self._id,
            feedback=feedback.value,
            intensity=self._intensity,
        )
        return self._intensity

    # ==========================================================================
    # Submissions
    # ==========================================================================

    def _challenge_for(self, phase: Phase, text: str) -> Challenge:
        try:
            return self.generator.generate(
                self._persona, phase, text, self._history, self._intensity
            )
        except NoPatternsForPhaseError as e:
            log.info("generic_challenge_fallback", phase=phase.value, reason=e.message)
            return self.generator.generic(self._persona, phase, self._history)

    async def _reply_for(
        self, phase: Phase, text: str, challenge: Challenge, degraded: List[str]
    ) -> Tuple[str, bool]:
        """Completion reply and transition hint (canned reply on failure)."""
        if self.completion is None:
            return challenge.text, False

        limit = self.config.session.context_turn_limit
        recent = self._history[:-1][-limit:]
        system_prompt = get_challenger_system_prompt(
            self._persona, phase, self._user_context, self._org_context
        )

        try:
            reply = await self.completion.complete(system_prompt, recent, text)
            return reply.text, reply.transition_hint
        except Exception as e:
            challenger_turns = sum(1 for t in self._history if t.is_challenger)
            log.warning(
                "completion_degraded",
                session_id=self._id,
                phase=phase.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            degraded.append("completion")
            return get_fallback_reply(phase, challenger_turns), False

    async def _speak(self, reply: str, challenge: Challenge, degraded: List[str]) -> Optional[bytes]:
        if not (self.synthesize_speech and self.voice is not None):
            return None

        try:
            audio = await self.voice.text_to_speech(reply, challenge.emotion)
        except Exception as e:
            log.warning("voice_degraded", session_id=self._id, error=str(e))
            degraded.append("voice")
            return None

        if self.presence is not None:
            try:
                await self.presence.deliver(audio, challenge.emotion, challenge.expression)
            except Exception as e:
                log.warning("presence_degraded", session_id=self._id, error=str(e))
                degraded.append("presence")

        return audio

    async def submit_user_utterance(self, text: str) -> TurnResult:
        """
        Process one user utterance and return the challenger's response.

        Raises:
            SessionNotStartedError: Before start
            ValidationError: If text is empty
        """
        self._require_started()
        text = (text or "").strip()
        if not text:
            raise ValidationError("Utterance must not be empty")

        phase = self._phase
        degraded: List[str] = []

        user_turn = ConversationTurn(speaker=Speaker.USER, content=text, phase=phase)
        self._history.append(user_turn)
        self._bump_on_engagement(text)

        challenge = self._challenge_for(phase, text)
        reply, transition_hint = await self._reply_for(phase, text, challenge, degraded)

        challenger_turn = ConversationTurn(
            speaker=Speaker.CHALLENGER,
            content=reply,
            phase=phase,
            challenge_type=challenge.challenge_type,
        )
        self._history.append(challenger_turn)
        self._challenges_issued += 1

        phase_changed = False
        if challenge.should_advance_phase:
            next_phase = self.policy.next_phase(phase)
            if next_phase != phase:
                self._phase = next_phase
                phase_changed = True
                log.info(
                    "phase_transitioned",
                    session_id=self._id,
                    from_phase=phase.value,
                    to_phase=next_phase.value,
                )

        if transition_hint and not phase_changed:
            log.debug("transition_hint_ignored", session_id=self._id, phase=phase.value)

        audio = await self._speak(reply, challenge, degraded)

        log.info(
            "turn_processed",
            session_id=self._id,
            phase=self._phase.value,
            challenge_type=challenge.challenge_type,
            pattern_id=challenge.pattern_id,
            intensity=self._intensity,
            degraded=bool(degraded),
        )

        return TurnResult(
            user_turn=user_turn,
            challenger_turn=challenger_turn,
            reply=reply,
            challenge=challenge,
            phase=self._phase,
            phase_changed=phase_changed,
            phase_message=get_phase_message(self._phase) if phase_changed else None,
            intensity=self._intensity,
            degraded=bool(degraded),
            degraded_services=degraded,
            transition_hint=transition_hint,
            suggestions=get_suggestions(self._phase),
            audio=audio,
        )

    def _transcription_failed(self) -> TurnResult:
        return TurnResult(
            reply=TRANSCRIPTION_FAILURE_REPLY,
            phase=self._phase,
            intensity=self._intensity,
            degraded=True,
            degraded_services=["transcription"],
            suggestions=get_suggestions(self._phase),
        )

    async def submit_voice_utterance(self, audio: bytes) -> TurnResult:
        """
        Transcribe user audio, then process it as a text utterance.

        The transcript goes through transcript_validator (when set) like
        typed text does. A transcription failure or a rejected transcript
        appends nothing and returns a degraded result asking the user to
        repeat.

        Raises:
            SessionNotStartedError: Before start
            ConfigurationError: If no voice service is configured
        """
        self._require_started()
        if self.voice is None:
            raise ConfigurationError("No voice service configured")

        try:
            text = await self.voice.speech_to_text(audio)
        except Exception as e:
            log.warning(
                "transcription_degraded",
                session_id=self._id,
                audio_bytes=len(audio or b""),
                error=str(e),
            )
            return self._transcription_failed()

        if self.transcript_validator is not None:
            try:
                text = self.transcript_validator(text)
            except ValidationError as e:
                log.warning("transcript_rejected", session_id=self._id, reason=e.message)
                return self._transcription_failed()

        log.info("voice_utterance_transcribed", session_id=self._id, chars=len(text))
        return await self.submit_user_utterance(text)

    # ==========================================================================
    # Outputs
    # ==========================================================================

    def request_document(self) -> Document:
        """
        Synthesize the strategy document from the full history.

        Raises:
            SessionNotStartedError: Before start
        """
        self._require_started()
        return self.synthesizer.synthesize(
            self._history,
            self._persona,
            self._user_context,
            self._org_context,
            document_type=self._document_type,
        )

    def recommended_actions(self) -> List[str]:
        """The persona's recommended next actions."""
        self._require_started()
        return list(self._persona.next_steps)

    def summary(self) -> SessionSummary:
        self._require_started()
        user_turns = sum(1 for t in self._history if t.is_user)
        challenger_turns = sum(1 for t in self._history if t.is_challenger)
        duration = (self.clock() - self._created_at).total_seconds()

        return SessionSummary(
            session_id=self._id,
            persona=self._persona.id,
            phase=self._phase,
            intensity=self._intensity,
            user_turns=user_turns,
            challenger_turns=challenger_turns,
            total_exchanges=min(user_turns, challenger_turns),
            challenges_issued=self._challenges_issued,
            duration_seconds=max(duration, 0.0),
        )
