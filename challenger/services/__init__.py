# noqa
from challenger.services.challenge_generator import ChallengeGenerator
from challenger.services.phase_policy import PhaseTransitionPolicy
from challenger.services.insight_extractor import InsightExtractor
from challenger.services.document_synthesizer import DocumentSynthesizer
from challenger.services.conversation_session import ConversationSession
from challenger.services.session_registry import SessionRegistry

__all__ = [
    "ChallengeGenerator",
    "PhaseTransitionPolicy",
    "InsightExtractor",
    "DocumentSynthesizer",
    "ConversationSession",
    "SessionRegistry",
]
