"""
PromptGate — Risk Aggregator
Deterministic fold of every detector output into a single verdict
Version: 1.0.0

The verdict is produced by an explicit, ordered tuple of escalation rules.
Each rule is tagged with the kind of transition it performs:

- FORCE_HIGH          risk becomes HIGH
- ESCALATE            LOW → MEDIUM, anything above LOW → HIGH
- ESCALATE_TO_MEDIUM  LOW → MEDIUM, otherwise unchanged
- OVERWRITE           risk becomes the rule's own label

Default order (reasoning is appended in this order, never detection order):

  1. pattern_threshold    max pattern weight > 0.7          FORCE_HIGH
  2. instruction_override override phrase present           ESCALATE
  3. role_confusion       persona injection                 ESCALATE_TO_MEDIUM
  4. context_pollution    history claimed, none supplied    ESCALATE_TO_MEDIUM
  5. encoding             obfuscation structure             FORCE_HIGH
  6. semantic             intent pattern with a label       OVERWRITE

Every transition passes through one guard that refuses to lower the current
risk.  OVERWRITE can therefore jump LOW → HIGH directly, but a semantic
MEDIUM cannot undo a HIGH set by an earlier rule.

Confidence is the maximum confidence contributed by any triggered rule.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from promptgate.analyzers.base import DetectorResult, RiskLevel
from promptgate.analyzers.pattern_analyzer import PatternScanResult
from promptgate.analyzers.semantic_analyzer import SemanticAnalysisResult

logger = logging.getLogger(__name__)

PATTERN_RISK_THRESHOLD = 0.7


class RuleEffect(str, Enum):
    """How a triggered rule moves the risk level"""
    FORCE_HIGH = "FORCE_HIGH"
    ESCALATE = "ESCALATE"
    ESCALATE_TO_MEDIUM = "ESCALATE_TO_MEDIUM"
    OVERWRITE = "OVERWRITE"


@dataclass(frozen=True)
class DetectorOutputs:
    """Everything the detectors produced for one input, in pipeline order"""
    patterns: PatternScanResult
    instruction_override: DetectorResult
    role_confusion: DetectorResult
    context_pollution: DetectorResult
    encoding: DetectorResult
    semantic: SemanticAnalysisResult


@dataclass(frozen=True)
class RuleOutcome:
    """Whether a rule fired, and what it contributes"""
    triggered: bool
    confidence: float = 0.0
    label: Optional[RiskLevel] = None
    detail: Optional[str] = None


NOT_TRIGGERED = RuleOutcome(triggered=False)


@dataclass(frozen=True)
class EscalationRule:
    """One step of the aggregation pipeline"""
    name: str
    effect: RuleEffect
    reasoning: str
    evaluate: Callable[[DetectorOutputs], RuleOutcome]

    def transition(self, current: RiskLevel, outcome: RuleOutcome) -> RiskLevel:
        """Risk level proposed by this rule, before the monotonic guard."""
        if self.effect is RuleEffect.FORCE_HIGH:
            return RiskLevel.HIGH
        if self.effect is RuleEffect.ESCALATE:
            return RiskLevel.MEDIUM if current is RiskLevel.LOW else RiskLevel.HIGH
        if self.effect is RuleEffect.ESCALATE_TO_MEDIUM:
            return RiskLevel.MEDIUM if current is RiskLevel.LOW else current
        if self.effect is RuleEffect.OVERWRITE:
            if outcome.label is None:
                raise ValueError(f"Rule {self.name!r} overwrites risk but supplied no label")
            return outcome.label
        raise ValueError(f"Unknown rule effect: {self.effect!r}")

    def describe(self, outcome: RuleOutcome) -> str:
        if outcome.detail:
            return f"{self.reasoning}: {outcome.detail}"
        return self.reasoning


@dataclass(frozen=True)
class AggregateVerdict:
    """Result of folding all rules"""
    risk: RiskLevel
    confidence: float
    reasoning: Tuple[str, ...]
    triggered_rules: Tuple[str, ...]


def never_lower(current: RiskLevel, proposed: RiskLevel) -> RiskLevel:
    """Monotonic escalation guard."""
    return proposed if proposed.rank >= current.rank else current


# ---------------------------------------------------------------------------
# Rule predicates
# ---------------------------------------------------------------------------

def _pattern_threshold(threshold: float) -> Callable[[DetectorOutputs], RuleOutcome]:
    def evaluate(outputs: DetectorOutputs) -> RuleOutcome:
        if outputs.patterns.max_risk > threshold:
            return RuleOutcome(triggered=True, confidence=outputs.patterns.max_risk)
        return NOT_TRIGGERED
    return evaluate


def _detector(attribute: str) -> Callable[[DetectorOutputs], RuleOutcome]:
    def evaluate(outputs: DetectorOutputs) -> RuleOutcome:
        result: DetectorResult = getattr(outputs, attribute)
        if result.detected:
            return RuleOutcome(triggered=True, confidence=result.confidence)
        return NOT_TRIGGERED
    return evaluate


def _semantic(outputs: DetectorOutputs) -> RuleOutcome:
    semantic = outputs.semantic
    if semantic.risk is RiskLevel.LOW:
        return NOT_TRIGGERED
    return RuleOutcome(
        triggered=True,
        confidence=semantic.confidence,
        label=semantic.risk,
        detail=semantic.reason,
    )


def default_rules(pattern_threshold: float = PATTERN_RISK_THRESHOLD) -> Tuple[EscalationRule, ...]:
    """The standard six-rule pipeline."""
    return (
        EscalationRule(
            name="pattern_threshold",
            effect=RuleEffect.FORCE_HIGH,
            reasoning="High-risk injection patterns detected",
            evaluate=_pattern_threshold(pattern_threshold),
        ),
        EscalationRule(
            name="instruction_override",
            effect=RuleEffect.ESCALATE,
            reasoning="Potential instruction override detected",
            evaluate=_detector("instruction_override"),
        ),
        EscalationRule(
            name="role_confusion",
            effect=RuleEffect.ESCALATE_TO_MEDIUM,
            reasoning="Role confusion attempt detected",
            evaluate=_detector("role_confusion"),
        ),
        EscalationRule(
            name="context_pollution",
            effect=RuleEffect.ESCALATE_TO_MEDIUM,
            reasoning="Context manipulation detected",
            evaluate=_detector("context_pollution"),
        ),
        EscalationRule(
            name="encoding",
            effect=RuleEffect.FORCE_HIGH,
            reasoning="Obfuscation/encoding attempt detected",
            evaluate=_detector("encoding"),
        ),
        EscalationRule(
            name="semantic",
            effect=RuleEffect.OVERWRITE,
            reasoning="Semantic analysis detected threats",
            evaluate=_semantic,
        ),
    )


class RiskAggregator:
    """
    Folds ``DetectorOutputs`` through the escalation rules.

    Starts at LOW with confidence 0.  Exceptions raised by a rule propagate;
    the engine converts them into an ERROR verdict.
    """

    def __init__(
        self,
        rules: Optional[Sequence[EscalationRule]] = None,
        pattern_threshold: float = PATTERN_RISK_THRESHOLD,
    ):
        self._rules: Tuple[EscalationRule, ...] = (
            tuple(rules) if rules is not None else default_rules(pattern_threshold)
        )
        names = [r.name for r in self._rules]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate escalation rule names: {names}")

    @property
    def rules(self) -> Tuple[EscalationRule, ...]:
        return self._rules

    def rule(self, name: str) -> EscalationRule:
        for candidate in self._rules:
            if candidate.name == name:
                return candidate
        raise KeyError(f"Unknown escalation rule: {name!r}")

    def fold(self, outputs: DetectorOutputs) -> AggregateVerdict:
        risk = RiskLevel.LOW
        confidence = 0.0
        reasoning: List[str] = []
        triggered: List[str] = []

        for rule in self._rules:
            outcome = rule.evaluate(outputs)
            if not outcome.triggered:
                continue
            risk = never_lower(risk, rule.transition(risk, outcome))
            confidence = max(confidence, outcome.confidence)
            reasoning.append(rule.describe(outcome))
            triggered.append(rule.name)
            logger.debug("rule %s fired -> %s (%.2f)", rule.name, risk.value, confidence)

        return AggregateVerdict(
            risk=risk,
            confidence=min(1.0, max(0.0, confidence)),
            reasoning=tuple(reasoning),
            triggered_rules=tuple(triggered),
        )

    def describe(self) -> List[Dict[str, str]]:
        """Rule table, in evaluation order."""
        return [
            {"name": r.name, "effect": r.effect.value, "reasoning": r.reasoning}
            for r in self._rules
        ]
