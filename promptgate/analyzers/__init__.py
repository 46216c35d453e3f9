"""
PromptGate - Analysers package

Exports every detector and the aggregator so integrators can import
directly from ``promptgate.analyzers`` without knowing the module layout.
All detectors are pure-Python regex matchers with no optional dependencies.
"""

from promptgate.analyzers.base import DetectorResult, RiskLevel
from promptgate.analyzers.context_pollution import ContextPollutionDetector
from promptgate.analyzers.encoding_detector import EncodingDetector
from promptgate.analyzers.instruction_override import InstructionOverrideDetector
from promptgate.analyzers.pattern_analyzer import (
    DetectionPattern,
    PatternAnalyzer,
    PatternMatch,
    PatternScanResult,
)
from promptgate.analyzers.risk_aggregator import (
    AggregateVerdict,
    DetectorOutputs,
    EscalationRule,
    RiskAggregator,
    RuleEffect,
    RuleOutcome,
    default_rules,
)
from promptgate.analyzers.role_confusion import RoleConfusionDetector
from promptgate.analyzers.semantic_analyzer import SemanticAnalysisResult, SemanticAnalyzer

__all__ = [
    "RiskLevel",
    "DetectorResult",
    "DetectionPattern",
    "PatternAnalyzer",
    "PatternMatch",
    "PatternScanResult",
    "InstructionOverrideDetector",
    "RoleConfusionDetector",
    "ContextPollutionDetector",
    "EncodingDetector",
    "SemanticAnalyzer",
    "SemanticAnalysisResult",
    "RiskAggregator",
    "EscalationRule",
    "RuleEffect",
    "RuleOutcome",
    "AggregateVerdict",
    "DetectorOutputs",
    "default_rules",
]
