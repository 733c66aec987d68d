"""
Heuristic insight extraction over a session transcript.

One pure function per insight category; InsightExtractor.extract runs them
all and returns an Insights model. Matching is keyword/regex based, with
no semantic understanding. All functions are deterministic: the same
history always yields the same lists in the same order.
"""

import re
from typing import Iterable, List, Optional, Sequence

import structlog

from challenger.core.config import InsightsConfig, challenge_config
from challenger.domain.models.insights import Insights
from challenger.domain.models.turn import ConversationTurn

log = structlog.get_logger(__name__)


GOAL_PHRASE_RE = re.compile(r"\b(want to|plan to|goal is(?: to)?)\s+([^.!?]+)")
GOAL_VERBS = ("build", "create", "launch", "improve", "increase", "reduce", "optimize")
GOAL_VERB_RES = [
    (verb, re.compile(rf"\b{verb}\s+([^.!?]+)")) for verb in GOAL_VERBS
]

ASSUMPTION_MARKERS = ("why", "how do you know", "what if")
DECISION_MARKERS = ("decide", "choose", "commit")
COMMITMENT_MARKERS = ("we will", "i will")
NEXT_STEP_MARKERS = ("next", "will do", "going to")
RISK_MARKERS = ("what if", "risk", "what breaks", "what happens when")

# Alternation order matters: currency, then percent, then plain numbers
METRIC_NUMBER_RE = re.compile(
    r"\$\d+(?:[.,]\d+)*(?:[kKmMbB](?![A-Za-z]))?"
    r"|\b\d+(?:\.\d+)?%"
    r"|\b\d+(?:\.\d+)?\b"
)
KPI_TERMS = ("revenue", "conversion", "retention", "growth", "users", "customers")

TIMELINE_RE = re.compile(
    r"\b(this week|next week|this month|in \d+ days|by \w+day|\d+ weeks?)\b"
)

SENTENCE_BREAK_RE = re.compile(r"[.!]\s+")


def _unique(items: Iterable[str]) -> List[str]:
    """De-duplicate preserving first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


def _user_turns(history: Sequence[ConversationTurn]) -> List[ConversationTurn]:
    return [turn for turn in history if turn.is_user]


def _challenger_turns(history: Sequence[ConversationTurn]) -> List[ConversationTurn]:
    return [turn for turn in history if turn.is_challenger]


def extract_goals(history: Sequence[ConversationTurn]) -> List[str]:
    """Goal phrases from user turns.

    Picks up "want to / plan to / goal is (to) <phrase>" and
    "<action verb> <phrase>", where a phrase runs to the next . ! or ?
    """
    goals = []
    for turn in _user_turns(history):
        content = turn.content.lower()

        for match in GOAL_PHRASE_RE.finditer(content):
            goals.append(match.group(2).strip())

        for verb, pattern in GOAL_VERB_RES:
            for match in pattern.finditer(content):
                goals.append(f"{verb} {match.group(1).strip()}")

    return _unique(goals)


def extract_challenged_assumptions(
    history: Sequence[ConversationTurn], limit: int = 5
) -> List[str]:
    """Assumption-probing questions asked by the challenger (first `limit`)."""
    assumptions = []
    for turn in _challenger_turns(history):
        # Last segment after the final "?" is not a question
        segments = turn.content.split("?")[:-1]
        for segment in segments:
            sentences = SENTENCE_BREAK_RE.split(segment.strip())
            question = sentences[-1].strip()
            if not question:
                continue
            lowered = question.lower()
            if any(marker in lowered for marker in ASSUMPTION_MARKERS):
                assumptions.append(f"{question}?")

    return assumptions[:limit]


def extract_key_decisions(
    history: Sequence[ConversationTurn], limit: int = 3
) -> List[str]:
    """Turns that state a decision or commitment (most recent `limit`)."""
    decisions = []
    for turn in history:
        content = turn.content.lower()
        if any(marker in content for marker in DECISION_MARKERS) or any(
            marker in content for marker in COMMITMENT_MARKERS
        ):
            decisions.append(turn.content)

    return decisions[-limit:]


def extract_next_steps(history: Sequence[ConversationTurn], limit: int = 3) -> List[str]:
    """Action-oriented turns (most recent `limit`)."""
    steps = [
        turn.content
        for turn in history
        if any(marker in turn.content.lower() for marker in NEXT_STEP_MARKERS)
    ]
    return steps[-limit:]


def extract_risk_factors(
    history: Sequence[ConversationTurn], limit: int = 3
) -> List[str]:
    """Risk-probing challenger turns (first `limit`)."""
    risks = [
        turn.content
        for turn in _challenger_turns(history)
        if any(marker in turn.content.lower() for marker in RISK_MARKERS)
    ]
    return risks[:limit]


def extract_metrics(history: Sequence[ConversationTurn]) -> List[str]:
    """Numbers (currency, percent, plain) and KPI terms mentioned anywhere."""
    metrics = []
    for turn in history:
        metrics.extend(match.group(0) for match in METRIC_NUMBER_RE.finditer(turn.content))
        lowered = turn.content.lower()
        metrics.extend(term for term in KPI_TERMS if term in lowered)

    return _unique(metrics)


def extract_timeline(history: Sequence[ConversationTurn]) -> List[str]:
    """Time-frame mentions such as "this week" or "in 30 days"."""
    mentions = []
    for turn in history:
        mentions.extend(
            match.group(0) for match in TIMELINE_RE.finditer(turn.content.lower())
        )
    return _unique(mentions)


class InsightExtractor:
    """Runs every extraction function over a history."""

    def __init__(self, config: Optional[InsightsConfig] = None):
        self.config = config or challenge_config.insights

    def extract(self, history: Sequence[ConversationTurn]) -> Insights:
        insights = Insights(
            goals=extract_goals(history),
            challenged_assumptions=extract_challenged_assumptions(
                history, limit=self.config.max_challenged_assumptions
            ),
            key_decisions=extract_key_decisions(
                history, limit=self.config.max_key_decisions
            ),
            next_steps=extract_next_steps(history, limit=self.config.max_next_steps),
            risk_factors=extract_risk_factors(
                history, limit=self.config.max_risk_factors
            ),
            metrics=extract_metrics(history),
            timeline=extract_timeline(history),
        )

        log.debug(
            "insights_extracted",
            turns=len(history),
            goals=len(insights.goals),
            key_decisions=len(insights.key_decisions),
            metrics=len(insights.metrics),
        )
        return insights
