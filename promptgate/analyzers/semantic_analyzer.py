"""
PromptGate - Semantic Threat Analyzer
Intent-level detection layered above the lexical detectors
Version: 1.0.0

"Semantic" here means intent phrasing (persuasion, information extraction,
security bypass), still expressed as regular expressions.  Unlike the
lexical layer this analyzer carries its own risk label, which the
aggregator applies directly.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from promptgate.analyzers.base import RiskLevel
from promptgate.data.threat_patterns import (
    PatternLibrary,
    compile_pattern,
    get_default_library,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SemanticThreat:
    """One intent pattern"""
    name: str
    matcher: "re.Pattern[str]"
    risk: RiskLevel
    confidence: float
    reason: str


@dataclass(frozen=True)
class SemanticAnalysisResult:
    """Semantic analysis result"""
    risk: RiskLevel
    confidence: float
    reason: Optional[str] = None
    pattern: Optional[str] = None
    matched_text: Optional[str] = None

    @property
    def is_threat(self) -> bool:
        return self.risk is not RiskLevel.LOW


class SemanticAnalyzer:
    """
    Ordered intent matcher.  The first threat whose pattern matches is
    returned as-is; no match yields LOW with zero confidence.
    """

    def __init__(self, library: Optional[PatternLibrary] = None):
        library = library or get_default_library()
        self.threats: Tuple[SemanticThreat, ...] = tuple(
            SemanticThreat(
                name=entry["name"],
                matcher=compile_pattern(entry, re.IGNORECASE),
                risk=RiskLevel.parse(entry["risk"]),
                confidence=float(entry["confidence"]),
                reason=entry.get("reason", entry["name"]),
            )
            for entry in library.semantic_threats
        )

    def analyze(self, text: str) -> SemanticAnalysisResult:
        for threat in self.threats:
            found = threat.matcher.search(text)
            if found:
                return SemanticAnalysisResult(
                    risk=threat.risk,
                    confidence=threat.confidence,
                    reason=threat.reason,
                    pattern=threat.name,
                    matched_text=found.group(0),
                )
        return SemanticAnalysisResult(risk=RiskLevel.LOW, confidence=0.0)
