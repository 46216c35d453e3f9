"""
PromptGate - Encoding / Obfuscation Detector

Structural detector for payloads hidden behind an encoding: base64-like
runs, ``\\xNN`` and ``\\uNNNN`` escapes, long cipher-like lowercase runs and
dense special-character runs.  A hit forces a HIGH verdict in the
aggregator whatever the payload decodes to.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

import logging
from typing import Optional

from promptgate.analyzers.base import DetectorResult
from promptgate.data.threat_patterns import (
    PatternLibrary,
    compile_pattern,
    get_default_library,
)

logger = logging.getLogger(__name__)


class EncodingDetector:
    """Any single structural match is sufficient; first match is reported."""

    def __init__(self, library: Optional[PatternLibrary] = None):
        library = library or get_default_library()
        block = library.encoding
        self.confidence = float(block["confidence"])
        self.patterns = tuple(
            (entry["name"], compile_pattern(entry))
            for entry in block["patterns"]
        )

    def analyze(self, text: str) -> DetectorResult:
        for name, regex in self.patterns:
            found = regex.search(text)
            if found:
                return DetectorResult(
                    detected=True,
                    confidence=self.confidence,
                    evidence=(found.group(0)[:80],),
                    pattern=name,
                )
        return DetectorResult.negative()
