"""
PromptGate - Shared detector types

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class RiskLevel(str, Enum):
    """Verdict levels, ordered LOW < MEDIUM < HIGH < ERROR."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @classmethod
    def parse(cls, value: str) -> "RiskLevel":
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown risk level: {value!r}") from None


_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.ERROR: 3,
}


@dataclass(frozen=True)
class DetectorResult:
    """Output of a boolean lexical detector"""
    detected: bool
    confidence: float
    evidence: Tuple[str, ...] = ()
    pattern: Optional[str] = None

    @classmethod
    def negative(cls) -> "DetectorResult":
        return cls(detected=False, confidence=0.0)
