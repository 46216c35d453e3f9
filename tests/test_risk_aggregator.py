"""
PromptGate - Risk Aggregator Tests

Each escalation rule is exercised in isolation by building DetectorOutputs
by hand, so the precedence table can be verified without any regex.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

from __future__ import annotations

import pytest

from promptgate.analyzers.base import DetectorResult, RiskLevel
from promptgate.analyzers.pattern_analyzer import PatternMatch, PatternScanResult
from promptgate.analyzers.risk_aggregator import (
    DetectorOutputs,
    EscalationRule,
    RiskAggregator,
    RuleEffect,
    RuleOutcome,
    never_lower,
)
from promptgate.analyzers.semantic_analyzer import SemanticAnalysisResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _hit(confidence: float) -> DetectorResult:
    return DetectorResult(detected=True, confidence=confidence, evidence=("x",))


def _outputs(
    pattern_risk: float = 0.0,
    override: bool = False,
    role: bool = False,
    pollution: bool = False,
    encoding: bool = False,
    semantic: RiskLevel = RiskLevel.LOW,
    semantic_confidence: float = 0.8,
) -> DetectorOutputs:
    matches = ()
    if pattern_risk:
        matches = (PatternMatch(name="p", risk=pattern_risk, matched_text="p"),)
    return DetectorOutputs(
        patterns=PatternScanResult(matches=matches, max_risk=pattern_risk),
        instruction_override=_hit(0.8) if override else DetectorResult.negative(),
        role_confusion=_hit(0.75) if role else DetectorResult.negative(),
        context_pollution=_hit(0.7) if pollution else DetectorResult.negative(),
        encoding=_hit(0.85) if encoding else DetectorResult.negative(),
        semantic=(
            SemanticAnalysisResult(risk=RiskLevel.LOW, confidence=0.0)
            if semantic is RiskLevel.LOW
            else SemanticAnalysisResult(
                risk=semantic, confidence=semantic_confidence, reason="Something odd"
            )
        ),
    )


@pytest.fixture
def aggregator() -> RiskAggregator:
    return RiskAggregator()


# ===========================================================================
# Rule table
# ===========================================================================

class TestRuleTable:

    def test_default_order(self, aggregator):
        assert [r.name for r in aggregator.rules] == [
            "pattern_threshold",
            "instruction_override",
            "role_confusion",
            "context_pollution",
            "encoding",
            "semantic",
        ]

    def test_describe(self, aggregator):
        table = aggregator.describe()

        assert table[0] == {
            "name": "pattern_threshold",
            "effect": "FORCE_HIGH",
            "reasoning": "High-risk injection patterns detected",
        }
        assert table[-1]["effect"] == "OVERWRITE"

    def test_duplicate_rule_names_rejected(self, aggregator):
        rule = aggregator.rule("encoding")
        with pytest.raises(ValueError):
            RiskAggregator(rules=[rule, rule])

    def test_unknown_rule(self, aggregator):
        with pytest.raises(KeyError):
            aggregator.rule("nope")

    def test_overwrite_without_label_is_an_error(self):
        rule = EscalationRule(
            name="broken",
            effect=RuleEffect.OVERWRITE,
            reasoning="broken",
            evaluate=lambda outputs: RuleOutcome(triggered=True, confidence=0.5),
        )
        with pytest.raises(ValueError):
            RiskAggregator(rules=[rule]).fold(_outputs())


# ===========================================================================
# Individual transitions
# ===========================================================================

class TestTransitions:

    def test_nothing_triggered(self, aggregator):
        verdict = aggregator.fold(_outputs())

        assert verdict.risk is RiskLevel.LOW
        assert verdict.confidence == 0.0
        assert verdict.reasoning == ()

    def test_pattern_threshold_is_strict(self, aggregator):
        assert aggregator.fold(_outputs(pattern_risk=0.7)).risk is RiskLevel.LOW

        verdict = aggregator.fold(_outputs(pattern_risk=0.75))
        assert verdict.risk is RiskLevel.HIGH
        assert verdict.confidence == 0.75

    def test_override_escalates_low_to_medium(self, aggregator):
        verdict = aggregator.fold(_outputs(override=True))

        assert verdict.risk is RiskLevel.MEDIUM
        assert verdict.confidence == 0.8

    def test_override_escalates_above_low_to_high(self):
        rules = RiskAggregator().rules
        reordered = RiskAggregator(rules=[rules[2], rules[1]])  # role first

        verdict = reordered.fold(_outputs(role=True, override=True))

        assert verdict.risk is RiskLevel.HIGH

    def test_role_and_pollution_stop_at_medium(self, aggregator):
        verdict = aggregator.fold(_outputs(role=True, pollution=True))

        assert verdict.risk is RiskLevel.MEDIUM
        assert verdict.confidence == 0.75
        assert verdict.triggered_rules == ("role_confusion", "context_pollution")

    def test_role_does_not_lower_high(self, aggregator):
        verdict = aggregator.fold(_outputs(pattern_risk=0.9, role=True))

        assert verdict.risk is RiskLevel.HIGH

    def test_encoding_forces_high(self, aggregator):
        verdict = aggregator.fold(_outputs(encoding=True))

        assert verdict.risk is RiskLevel.HIGH
        assert verdict.confidence == 0.85

    def test_semantic_overwrite_jumps_to_high(self, aggregator):
        verdict = aggregator.fold(_outputs(semantic=RiskLevel.HIGH))

        assert verdict.risk is RiskLevel.HIGH
        assert verdict.reasoning == ("Semantic analysis detected threats: Something odd",)

    def test_semantic_medium_cannot_lower_high(self, aggregator):
        verdict = aggregator.fold(_outputs(encoding=True, semantic=RiskLevel.MEDIUM,
                                           semantic_confidence=0.7))

        assert verdict.risk is RiskLevel.HIGH
        assert verdict.confidence == 0.85
        assert verdict.triggered_rules == ("encoding", "semantic")


# ===========================================================================
# Whole-pipeline properties
# ===========================================================================

class TestFoldProperties:

    def test_reasoning_in_rule_order(self, aggregator):
        verdict = aggregator.fold(_outputs(
            pattern_risk=0.9, override=True, role=True, pollution=True,
            encoding=True, semantic=RiskLevel.HIGH,
        ))

        assert verdict.reasoning == (
            "High-risk injection patterns detected",
            "Potential instruction override detected",
            "Role confusion attempt detected",
            "Context manipulation detected",
            "Obfuscation/encoding attempt detected",
            "Semantic analysis detected threats: Something odd",
        )
        assert verdict.confidence == 0.9

    @pytest.mark.parametrize("flags", [
        {},
        {"override": True},
        {"role": True, "semantic": RiskLevel.MEDIUM},
        {"pattern_risk": 0.6, "pollution": True},
    ])
    def test_encoding_always_high(self, aggregator, flags):
        assert aggregator.fold(_outputs(encoding=True, **flags)).risk is RiskLevel.HIGH

    def test_reasoning_length_matches_triggered_rules(self, aggregator):
        verdict = aggregator.fold(_outputs(override=True, pollution=True))

        assert len(verdict.reasoning) == len(verdict.triggered_rules) == 2

    def test_never_lower(self):
        assert never_lower(RiskLevel.HIGH, RiskLevel.MEDIUM) is RiskLevel.HIGH
        assert never_lower(RiskLevel.LOW, RiskLevel.HIGH) is RiskLevel.HIGH


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
