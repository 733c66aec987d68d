"""
Strategy document synthesis.

Pipeline:
    history -> InsightExtractor -> Insights
    template (persona default or override) -> one generator per section
    -> markdown render with SESSION SUMMARY -> Document

Section generators are deterministic functions of Insights; unknown
section names get a generic placeholder sentence. The clock is injected so
renders of the same history are byte-identical.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Sequence

import structlog

from challenger.core.template_loader import DocumentTemplateCatalog, get_template_catalog
from challenger.domain.models.document import Document, DocumentMetadata
from challenger.domain.models.insights import Insights
from challenger.domain.models.persona import PersonaDefinition
from challenger.domain.models.session import OrgContext, UserContext
from challenger.domain.models.turn import ConversationTurn
from challenger.services.insight_extractor import InsightExtractor

log = structlog.get_logger(__name__)

Clock = Callable[[], datetime]
SectionGenerator = Callable[[Insights], str]

CLOSING_QUOTE = (
    '*"The only way to make the right decision is to be challenged by someone '
    'who disagrees with you."*'
)
FOLLOW_UP = (
    "**Next Challenge Session:** Schedule weekly follow-up to track progress "
    "and maintain momentum."
)


def _first(items: Sequence[str], default: str) -> str:
    return items[0] if items else default


def _joined(items: Sequence[str], default: str) -> str:
    return ", ".join(items) if items else default


# =============================================================================
# Section generators
# =============================================================================


def big_bet(insights: Insights) -> str:
    goal = _first(insights.goals, "optimize current strategy")
    return (
        f"You're betting that {goal} will drive measurable business impact "
        "within the next 90 days."
    )


def the_math(insights: Insights) -> str:
    metrics = _joined(insights.metrics, "key performance indicators")
    return (
        f"Expected impact: {metrics}. Success defined by measurable improvement "
        "in core business metrics within defined timeline."
    )


def the_risk(insights: Insights) -> str:
    risk = _first(insights.risk_factors, "Execution may take longer than expected")
    return (
        f"Primary risk: {risk} Mitigation: Weekly progress checkpoints and pivot "
        "triggers established."
    )


def the_risks(insights: Insights) -> str:
    if not insights.risk_factors:
        return (
            "Known risks: Slow customer adoption, longer sales cycles than "
            "planned, and competitive response."
        )
    return "Known risks:\n" + "\n".join(f"- {risk}" for risk in insights.risk_factors)


def decision_point(insights: Insights) -> str:
    timeline = _first(insights.timeline, "end of month")
    return (
        f"Decision point: {timeline}. If progress indicators aren't met, pivot to "
        "alternative approach or reallocate resources."
    )


def not_doing(insights: Insights) -> str:
    return (
        "Explicitly NOT doing: Lower-priority initiatives, consensus-building "
        "meetings, and incremental optimizations that don't move the needle."
    )


def hypothesis(insights: Insights) -> str:
    goal = _first(insights.goals, "target market opportunity")
    return (
        f"Market hypothesis: {goal} represents significant unmet need with "
        "customers willing to pay for solution."
    )


def proof_points(insights: Insights) -> str:
    return (
        "Evidence: Customer conversations, market research, competitive analysis, "
        "and initial validation tests support core hypothesis."
    )


def moat(insights: Insights) -> str:
    return (
        "Competitive advantage: Unique approach, superior execution speed, "
        "exclusive partnerships, or proprietary technology/data."
    )


def the_numbers(insights: Insights) -> str:
    metrics = _joined(insights.metrics, "revenue, CAC, LTV")
    return (
        f"Key metrics: {metrics}. Unit economics must be positive within 6 months "
        "of launch."
    )


def ninety_day_test(insights: Insights) -> str:
    return (
        "90-day validation: Specific customer acquisition targets, revenue "
        "milestones, and product-market fit indicators."
    )


def resource_reallocation(insights: Insights) -> str:
    return (
        "Resource shifts: Double down on highest-impact initiatives, eliminate or "
        "reduce funding for underperforming projects."
    )


def controversial_decisions(insights: Insights) -> str:
    if insights.key_decisions:
        return "Bold moves:\n" + "\n".join(f"- {d}" for d in insights.key_decisions)
    return (
        "Bold moves: Decisions that competitors won't make, conventional wisdom "
        "challenges, aggressive market positioning."
    )


def ninety_day_commitments(insights: Insights) -> str:
    commitments = list(insights.key_decisions) + [
        step for step in insights.next_steps if step not in insights.key_decisions
    ]
    if not commitments:
        return (
            "90-day commitments: One owner, one measurable outcome and one "
            "deadline per initiative."
        )
    return "90-day commitments:\n" + "\n".join(f"- {c}" for c in commitments)


def forcing_functions(insights: Insights) -> str:
    timeline = _first(insights.timeline, "monthly")
    return (
        f"Urgency mechanisms: {timeline} reviews, public commitments, and automatic "
        "escalation triggers for delayed decisions."
    )


def decision_framework(insights: Insights) -> str:
    return (
        "Decision process: Single owner for each outcome, 48-hour maximum for "
        "reversible decisions, escalation path for conflicts."
    )


def meeting_elimination(insights: Insights) -> str:
    return (
        "Meeting reduction: Cancel status meetings, replace with async updates, "
        "limit attendees to decision-makers only."
    )


def single_metrics(insights: Insights) -> str:
    metric = _first(insights.metrics, "one outcome metric per team")
    return (
        f"North-star metric: {metric}. Every team tracks exactly one number and "
        "reports it weekly."
    )


def communication_rules(insights: Insights) -> str:
    return (
        "Communication rules: Written updates by default, decisions recorded in "
        "one place, no reply-all threads for status."
    )


def accountability_system(insights: Insights) -> str:
    return (
        "Tracking: Weekly outcome reviews, public progress dashboards, individual "
        "ownership of specific results."
    )


def generic_section(section_name: str, insights: Insights) -> str:
    return (
        f"{section_name}: Specific actions and commitments based on strategic "
        "discussion and challenger feedback."
    )


SECTION_GENERATORS: Dict[str, SectionGenerator] = {
    "THE BIG BET": big_bet,
    "THE MATH": the_math,
    "THE RISK": the_risk,
    "THE DECISION POINT": decision_point,
    "WHAT YOU'RE NOT DOING": not_doing,
    "THE HYPOTHESIS": hypothesis,
    "THE PROOF POINTS": proof_points,
    "THE MOAT": moat,
    "THE NUMBERS": the_numbers,
    "THE RISKS": the_risks,
    "THE 90-DAY TEST": ninety_day_test,
    "RESOURCE REALLOCATION": resource_reallocation,
    "THE CONTROVERSIAL DECISIONS": controversial_decisions,
    "90-DAY COMMITMENTS": ninety_day_commitments,
    "THE FORCING FUNCTIONS": forcing_functions,
    "DECISION FRAMEWORK": decision_framework,
    "MEETING ELIMINATION": meeting_elimination,
    "SINGLE METRICS": single_metrics,
    "COMMUNICATION RULES": communication_rules,
    "ACCOUNTABILITY SYSTEM": accountability_system,
}


def generate_section(section_name: str, insights: Insights) -> str:
    generator = SECTION_GENERATORS.get(section_name)
    if generator is None:
        return generic_section(section_name, insights)
    return generator(insights)


# =============================================================================
# Synthesizer
# =============================================================================


class DocumentSynthesizer:
    """Builds strategy documents from session history."""

    def __init__(
        self,
        templates: Optional[DocumentTemplateCatalog] = None,
        extractor: Optional[InsightExtractor] = None,
        clock: Optional[Clock] = None,
    ):
        self.templates = templates or get_template_catalog()
        self.extractor = extractor or InsightExtractor()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def synthesize(
        self,
        history: Sequence[ConversationTurn],
        persona: PersonaDefinition,
        user_context: UserContext,
        org_context: OrgContext,
        document_type: Optional[str] = None,
    ) -> Document:
        """
        Synthesize a strategy document.

        Args:
            history: Full session history
            persona: Session persona (supplies the default document type)
            user_context: Who the document is for
            org_context: The user's organization
            document_type: Template override

        Returns:
            Document

        Raises:
            UnknownDocumentTemplateError: If the document type has no template
        """
        document_type = document_type or persona.document_type
        template = self.templates.get(document_type)

        insights = self.extractor.extract(history)
        sections = {name: generate_section(name, insights) for name in template.sections}
        timestamp = self.clock()

        content = self.render(
            title=template.title,
            sections=sections,
            insights=insights,
            persona=persona,
            user_context=user_context,
            org_context=org_context,
            timestamp=timestamp,
        )

        document = Document(
            title=template.title,
            sections=sections,
            metadata=DocumentMetadata(
                timestamp=timestamp,
                user_name=user_context.name,
                company_name=org_context.name,
                document_type=document_type,
                persona=persona.id,
                word_count=len(content.split()),
            ),
            content=content,
            insights=insights,
        )

        log.info(
            "document_synthesized",
            document_type=document_type,
            persona=persona.id.value,
            sections=len(sections),
            word_count=document.metadata.word_count,
        )
        return document

    @staticmethod
    def render(
        title: str,
        sections: Dict[str, str],
        insights: Insights,
        persona: PersonaDefinition,
        user_context: UserContext,
        org_context: OrgContext,
        timestamp: datetime,
    ) -> str:
        """Render the document as markdown."""
        lines = [
            f"# {title}",
            "",
            f"**Generated:** {timestamp.strftime('%Y-%m-%d')}",
            f"**For:** {user_context.name} at {org_context.name}",
            f"**Challenger:** {persona.display_name}",
            "**Session Type:** Strategic Challenge Session",
            "",
            "---",
            "",
        ]

        for name, body in sections.items():
            lines.extend([f"## {name}", body, ""])

        lines.extend(
            [
                "---",
                "",
                "## SESSION SUMMARY",
                f"- **Key Challenges Addressed:** {len(insights.challenged_assumptions)}",
                f"- **Decisions Forced:** {len(insights.key_decisions)}",
                f"- **Action Items:** {len(insights.next_steps)}",
                f"- **Risk Factors Identified:** {len(insights.risk_factors)}",
                "",
                CLOSING_QUOTE,
                "",
                FOLLOW_UP,
                "",
            ]
        )
        return "\n".join(lines)
