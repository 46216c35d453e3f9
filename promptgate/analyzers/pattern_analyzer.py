"""
PromptGate - Pattern Analyzer
Registry-driven lexical injection matching
Version: 1.0.0

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from promptgate.data.threat_patterns import (
    PatternLibrary,
    compile_pattern,
    get_default_library,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionPattern:
    """A named, compiled injection signature with a static risk weight"""
    name: str
    matcher: "re.Pattern[str]" = field(compare=False)
    risk: float
    description: str = ""


@dataclass(frozen=True)
class PatternMatch:
    """Evidence for one firing pattern"""
    name: str
    risk: float
    matched_text: Optional[str]

    def to_dict(self) -> dict:
        return {"name": self.name, "risk": self.risk, "matched": self.matched_text}


@dataclass(frozen=True)
class PatternScanResult:
    """Pattern analysis result"""
    matches: Tuple[PatternMatch, ...]
    max_risk: float

    @property
    def matched_names(self) -> List[str]:
        return [m.name for m in self.matches]


class PatternAnalyzer:
    """
    Lexical injection matcher.

    Every registered pattern is evaluated against the lower-cased input, in
    registry order; none short-circuits another.  ``max_risk`` is the
    heaviest weight among the patterns that fired.
    """

    def __init__(self, library: Optional[PatternLibrary] = None):
        self.library = library or get_default_library()
        self.patterns = self._compile_patterns()
        logger.debug(
            "PatternAnalyzer: %d patterns loaded (library %s)",
            len(self.patterns), self.library.version,
        )

    def _compile_patterns(self) -> Tuple[DetectionPattern, ...]:
        """Pre-compile all regex patterns for performance"""
        return tuple(
            DetectionPattern(
                name=entry["name"],
                matcher=compile_pattern(entry, re.MULTILINE),
                risk=float(entry["risk"]),
                description=entry.get("description", ""),
            )
            for entry in self.library.injection_patterns
        )

    def analyze(self, text: str) -> PatternScanResult:
        """
        Scan *text* against every injection pattern.

        Args:
            text: Raw input; matched in lower case.

        Returns:
            PatternScanResult with one match per firing pattern, in
            registry order, and the maximum weight among them.
        """
        normalized = self.normalize_text(text)
        if not normalized.strip():
            return PatternScanResult(matches=(), max_risk=0.0)

        matches: List[PatternMatch] = []
        max_risk = 0.0
        for pattern in self.patterns:
            found = pattern.matcher.search(normalized)
            if found:
                matches.append(PatternMatch(
                    name=pattern.name,
                    risk=pattern.risk,
                    matched_text=found.group(0),
                ))
                max_risk = max(max_risk, pattern.risk)

        return PatternScanResult(matches=tuple(matches), max_risk=max_risk)

    @staticmethod
    def normalize_text(text: str) -> str:
        """Lower-case the input; raises for non-string input."""
        return text.lower()

    def match_pattern(self, text: str, name: str) -> Tuple[bool, Optional[str]]:
        """
        Test text against a single named pattern

        Returns:
            (matched, first_matched_substring)
        """
        for pattern in self.patterns:
            if pattern.name == name:
                found = pattern.matcher.search(self.normalize_text(text))
                return (found is not None, found.group(0) if found else None)
        raise KeyError(f"Unknown pattern: {name!r}")
