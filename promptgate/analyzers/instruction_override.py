"""
PromptGate - Instruction-Override Detector

Substring detector for phrases that try to replace or discard the model's
existing instructions.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

import logging
from typing import Optional

from promptgate.analyzers.base import DetectorResult
from promptgate.data.threat_patterns import PatternLibrary, get_default_library

logger = logging.getLogger(__name__)


class InstructionOverrideDetector:
    """Case-insensitive phrase detector; collects every phrase present."""

    def __init__(self, library: Optional[PatternLibrary] = None):
        library = library or get_default_library()
        block = library.instruction_overrides
        self.phrases = tuple(p.lower() for p in block["phrases"])
        self.confidence = float(block["confidence"])

    def analyze(self, text: str) -> DetectorResult:
        lowered = text.lower()
        evidence = tuple(p for p in self.phrases if p in lowered)
        if not evidence:
            return DetectorResult.negative()
        return DetectorResult(
            detected=True,
            confidence=self.confidence,
            evidence=evidence,
        )
