"""
Prompts for challenger replies.

Builds the completion system prompt from:
- Persona system prompt (loaded from config/personas/<id>.yaml)
- User and organization context
- Current phase and its guidelines

Also holds the fixed per-phase text used around the completion call:
canned fallback replies, suggested follow-ups, advisory transition
indicators and phase banners.
"""

from typing import Dict, List, Tuple

from challenger.domain.models.persona import PersonaDefinition
from challenger.domain.models.phase import Phase
from challenger.domain.models.session import OrgContext, UserContext


PHASE_GUIDELINES: Dict[Phase, str] = {
    Phase.PROVOCATION: (
        "PROVOCATION PHASE: Challenge their initial idea. Be provocative and push "
        'them to think bigger. Ask "why" and "what if" questions. Make them defend '
        "their assumptions."
    ),
    Phase.DEEP_DIVE: (
        "DEEP DIVE PHASE: Drill into specifics. Demand numbers, timelines, and "
        "concrete details. Challenge their execution plan and resource allocation. "
        "Push for clarity on metrics and success criteria."
    ),
    Phase.SYNTHESIS: (
        "SYNTHESIS PHASE: Force decision-making. No more analysis paralysis. Push "
        "for concrete next steps and ownership. Challenge them to commit to specific "
        "actions with deadlines."
    ),
    Phase.OUTPUT: (
        "OUTPUT PHASE: The decision is made. Help them capture it: the bet, the "
        "owner, the first concrete step and its deadline."
    ),
}

RESPONSE_GUIDELINES = """RESPONSE GUIDELINES:
- Keep responses under 100 words
- Ask pointed questions that force deeper thinking
- Challenge assumptions directly
- Suggest bold alternatives
- Be provocative but not insulting"""


def get_challenger_system_prompt(
    persona: PersonaDefinition,
    phase: Phase,
    user_context: UserContext,
    org_context: OrgContext,
) -> str:
    """
    Get system prompt for a challenger reply.

    Args:
        persona: Persona the challenger speaks as
        phase: Current session phase
        user_context: Who the user is
        org_context: The user's organization

    Returns:
        System prompt string
    """
    industry = org_context.industry or "technology"
    context = (
        "CONVERSATION CONTEXT:\n"
        f"- User: {user_context.name} ({user_context.role})\n"
        f"- Company: {org_context.name} ({org_context.size.value} in {industry})\n"
        f"- Persona: {persona.display_name}"
    )

    return "\n\n".join(
        [
            persona.system_prompt.strip(),
            context,
            f"CURRENT PHASE: {phase.value.upper()}\n\n"
            f"Phase Guidelines:\n{PHASE_GUIDELINES[phase]}",
            RESPONSE_GUIDELINES,
        ]
    )


# =============================================================================
# Fallback replies
# =============================================================================

FALLBACK_REPLIES: Dict[Phase, Tuple[str, ...]] = {
    Phase.PROVOCATION: (
        "That sounds safe. Where's the innovation?",
        "Show me the math on that.",
        "What would 10x look like?",
        "That's incremental. Think bigger.",
    ),
    Phase.DEEP_DIVE: (
        "I need specifics. What are the actual numbers?",
        "How do you measure success here?",
        "What breaks when you scale this?",
        "Where's the concrete plan?",
    ),
    Phase.SYNTHESIS: (
        "Enough analysis. What's the decision?",
        "Time to commit. What are you actually going to do?",
        "Stop talking, start executing. What's step one?",
        "Decision time. What's it going to be?",
    ),
    Phase.OUTPUT: ("Let's document your decision and the next concrete steps.",),
}

TRANSCRIPTION_FAILURE_REPLY = "I didn't catch that. Can you say that again?"


def get_fallback_reply(phase: Phase, challenger_turns: int) -> str:
    """Canned reply used when the completion service fails.

    Rotates through the phase's replies by how many challenger turns the
    session already has, so the choice is deterministic.
    """
    replies = FALLBACK_REPLIES[phase]
    return replies[challenger_turns % len(replies)]


# =============================================================================
# Suggestions and phase banners
# =============================================================================

SUGGESTIONS: Dict[Phase, Tuple[str, ...]] = {
    Phase.PROVOCATION: (
        "Tell me more about the impact",
        "What's your biggest constraint?",
        "Show me the numbers",
        "What would 10x look like?",
    ),
    Phase.DEEP_DIVE: (
        "How do you measure success?",
        "What breaks if you scale this?",
        "What's the timeline?",
        "Who owns this outcome?",
    ),
    Phase.SYNTHESIS: (
        "What's the first step?",
        "When do you start?",
        "What's the decision?",
        "How do we move forward?",
    ),
    Phase.OUTPUT: (
        "Generate my strategy document",
        "What should I do this week?",
    ),
}

PHASE_MESSAGES: Dict[Phase, str] = {
    Phase.PROVOCATION: "Let's dig into this...",
    Phase.DEEP_DIVE: "Now I'm really going to challenge you...",
    Phase.SYNTHESIS: "Time to make decisions...",
    Phase.OUTPUT: "Let's generate your strategy document...",
}


def get_suggestions(phase: Phase) -> List[str]:
    return list(SUGGESTIONS[phase])


def get_phase_message(phase: Phase) -> str:
    return PHASE_MESSAGES[phase]


# =============================================================================
# Advisory transition hint
# =============================================================================

TRANSITION_INDICATORS: Dict[Phase, Tuple[str, ...]] = {
    Phase.PROVOCATION: ("understood", "clear", "got it", "makes sense", "you're right"),
    Phase.DEEP_DIVE: ("specific", "detailed", "numbers", "concrete", "exactly", "precisely"),
    Phase.SYNTHESIS: ("decision", "choose", "commit", "action", "will do", "next step"),
    Phase.OUTPUT: (),
}


def detect_transition_hint(reply: str, phase: Phase) -> bool:
    """Whether a completion reply reads like the phase has run its course.

    Advisory only; phase changes come from the transition policy.
    """
    text = reply.lower()
    return any(indicator in text for indicator in TRANSITION_INDICATORS[phase])
