"""
PromptGate - Context-Pollution Detector

Flags input that claims a shared conversation history ("as we discussed
earlier") when the caller supplied no history at all.  The claim on its own
is harmless in a real multi-turn session; only the mismatch is suspicious.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

import logging
from typing import Optional, Sequence

from promptgate.analyzers.base import DetectorResult
from promptgate.data.threat_patterns import PatternLibrary, get_default_library

logger = logging.getLogger(__name__)


class ContextPollutionDetector:
    """Detected only when an indicator is present AND history is empty."""

    def __init__(self, library: Optional[PatternLibrary] = None):
        library = library or get_default_library()
        block = library.context_pollution
        self.indicators = tuple(i.lower() for i in block["indicators"])
        self.confidence = float(block["confidence"])

    def analyze(
        self,
        text: str,
        conversation_history: Optional[Sequence[str]] = None,
    ) -> DetectorResult:
        lowered = text.lower()
        evidence = tuple(i for i in self.indicators if i in lowered)
        has_history = conversation_history is not None and len(conversation_history) > 0

        if not evidence or has_history:
            return DetectorResult.negative()
        return DetectorResult(
            detected=True,
            confidence=self.confidence,
            evidence=evidence,
        )
