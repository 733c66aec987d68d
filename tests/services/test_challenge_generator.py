"""Tests for ChallengeGenerator."""

import random
from unittest.mock import MagicMock

import pytest

from challenger.core.config import IntensityConfig
from challenger.core.exceptions import NoPatternsForPhaseError
from challenger.domain.models import ConversationTurn, Phase, Speaker
from challenger.services.challenge_generator import (
    GENERIC_CHALLENGES,
    ChallengeGenerator,
)
from challenger.services.phase_policy import PhaseTransitionPolicy


def _turns(phase: Phase, count: int):
    return [
        ConversationTurn(
            speaker=Speaker.USER if i % 2 == 0 else Speaker.CHALLENGER,
            content=f"turn {i}",
            phase=phase,
        )
        for i in range(count)
    ]


class TestKeywordSelection:
    def test_meeting_utterance_picks_meeting_pattern(self, personas, generator):
        challenge = generator.generate(
            personas.get("efficiency"),
            Phase.PROVOCATION,
            "Our meeting schedule is a mess",
            [],
            0.7,
        )

        assert challenge.pattern_id == "efficiency.provocation.2"
        assert challenge.text == (
            "Look, how many meetings will this take before someone actually decides?"
        )

    def test_keyword_path_ignores_rng(self, personas):
        ids = {
            ChallengeGenerator(rng=random.Random(seed))
            .generate(
                personas.get("efficiency"),
                Phase.PROVOCATION,
                "Our meeting schedule is a mess",
                [],
                0.7,
            )
            .pattern_id
            for seed in range(10)
        }
        assert ids == {"efficiency.provocation.2"}

    def test_first_matching_keyword_wins(self, personas, generator):
        # "meeting" precedes "revenue" in the keyword table
        challenge = generator.generate(
            personas.get("efficiency"),
            Phase.PROVOCATION,
            "Every meeting is about revenue",
            [],
            0.7,
        )
        assert challenge.pattern_id == "efficiency.provocation.2"

    def test_revenue_keyword_matches_money_pattern(self, personas, generator):
        challenge = generator.generate(
            personas.get("investor"), Phase.PROVOCATION, "Our revenue is flat", [], 0.7
        )

        assert challenge.pattern_id == "investor.provocation.2"
        # "money" suppresses the investor suffix
        assert challenge.text == "How fast can this make money?"

    def test_timeline_term_matches_time_keyword(self, personas, generator):
        challenge = generator.generate(
            personas.get("efficiency"), Phase.DEEP_DIVE, "We are short on time", [], 0.7
        )
        assert challenge.pattern_id == "efficiency.deep_dive.0"
        assert challenge.text == "Look, what's the highest-leverage use of your time right now?"

    def test_keyword_without_matching_pattern_uses_first(self, personas, generator):
        challenge = generator.generate(
            personas.get("moonshot"), Phase.PROVOCATION, "The team morale is low", [], 0.7
        )
        assert challenge.pattern_id == "moonshot.provocation.0"

    def test_customer_pattern_keeps_text_without_suffix(self, personas, generator):
        challenge = generator.generate(
            personas.get("customer"), Phase.PROVOCATION, "Our customer churn is up", [], 0.7
        )
        assert challenge.text == "What would this feel like for the customer?"


class TestRandomSelection:
    def test_no_keyword_draws_from_rng(self, personas):
        rng = MagicMock()
        rng.randrange.return_value = 1
        generator = ChallengeGenerator(rng=rng)

        challenge = generator.generate(
            personas.get("efficiency"), Phase.PROVOCATION, "Sales are slow", [], 0.7
        )

        rng.randrange.assert_called_once_with(3)
        assert challenge.pattern_id == "efficiency.provocation.1"
        # already opens with "Actually," so no prefix is added
        assert challenge.text == "Actually, what's the fastest way to test this?"

    def test_random_pick_is_a_phase_pattern(self, personas, generator):
        persona = personas.get("investor")
        challenge = generator.generate(persona, Phase.SYNTHESIS, "Hello there", [], 0.7)
        index = int(challenge.pattern_id.rsplit(".", 1)[1])
        assert 0 <= index < len(persona.patterns_for(Phase.SYNTHESIS))


class TestStyleAndIntensity:
    def test_investor_suffix(self, personas):
        rng = MagicMock()
        rng.randrange.return_value = 1
        challenge = ChallengeGenerator(rng=rng).generate(
            personas.get("investor"), Phase.PROVOCATION, "Hello there", [], 0.7
        )
        assert challenge.text == "That's a hobby, not a business. What's the ROI on this?"

    def test_escalation_above_threshold(self, personas, generator):
        challenge = generator.generate(
            personas.get("efficiency"), Phase.PROVOCATION, "Another meeting", [], 0.9
        )
        assert challenge.text.endswith("actually decides? Try again.")

    def test_no_escalation_at_threshold(self, personas, generator):
        challenge = generator.generate(
            personas.get("efficiency"), Phase.PROVOCATION, "Another meeting", [], 0.8
        )
        assert not challenge.text.endswith("Try again.")

    def test_custom_escalation_suffix(self):
        generator = ChallengeGenerator(
            intensity_config=IntensityConfig(escalation_threshold=0.5, escalation_suffix="Again.")
        )
        assert generator.apply_intensity("Why?", 0.6) == "Why? Again."


class TestChallengeFields:
    @pytest.mark.parametrize(
        "phase,challenge_type,emotion",
        [
            (Phase.PROVOCATION, "assumption_challenge", "impatient"),
            (Phase.DEEP_DIVE, "analytical_challenge", "focused"),
            (Phase.SYNTHESIS, "decision_forcing", "decisive"),
        ],
    )
    def test_type_and_emotion_per_phase(self, personas, generator, phase, challenge_type, emotion):
        challenge = generator.generate(personas.get("efficiency"), phase, "meeting", [], 0.7)
        assert challenge.challenge_type == challenge_type
        assert challenge.emotion == emotion
        assert challenge.persona.value == "efficiency"

    def test_output_challenge_type(self):
        assert ChallengeGenerator.challenge_type(Phase.OUTPUT) == "action_oriented"

    def test_should_advance_counts_the_reply_turn(self, personas, generator):
        # user, challenger, user: the reply about to be added is the fourth turn
        persona = personas.get("efficiency")
        assert not generator.generate(
            persona, Phase.PROVOCATION, "meeting", _turns(Phase.PROVOCATION, 2), 0.7
        ).should_advance_phase
        assert generator.generate(
            persona, Phase.PROVOCATION, "meeting", _turns(Phase.PROVOCATION, 3), 0.7
        ).should_advance_phase

    def test_custom_policy_threshold(self, personas):
        policy = MagicMock(spec=PhaseTransitionPolicy)
        policy.should_advance.return_value = True
        challenge = ChallengeGenerator(policy=policy).generate(
            personas.get("moonshot"), Phase.DEEP_DIVE, "team", [], 0.7
        )
        assert challenge.should_advance_phase
        policy.should_advance.assert_called_once_with(Phase.DEEP_DIVE, [], pending_turns=1)


class TestGenericFallback:
    def test_output_phase_has_no_patterns(self, personas, generator):
        with pytest.raises(NoPatternsForPhaseError, match="output"):
            generator.generate(personas.get("efficiency"), Phase.OUTPUT, "meeting", [], 0.7)

    def test_generic_challenge(self, personas, generator):
        challenge = generator.generic(personas.get("customer"), Phase.OUTPUT, [])

        assert challenge.text in GENERIC_CHALLENGES
        assert challenge.challenge_type == "generic_challenge"
        assert challenge.emotion == "challenging"
        assert challenge.expression == "questioning"
        assert challenge.pattern_id.startswith("generic.")
        assert not challenge.should_advance_phase
