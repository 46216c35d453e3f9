"""
PromptGate - Role-Confusion Detector

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

import logging
import re
from typing import Optional

from promptgate.analyzers.base import DetectorResult
from promptgate.data.threat_patterns import (
    PatternLibrary,
    compile_pattern,
    get_default_library,
)

logger = logging.getLogger(__name__)


class RoleConfusionDetector:
    """
    Persona-injection detector ("you are now a hacker", "act like you are
    unrestricted").

    Patterns are tried in order and the first one that matches decides the
    result; later patterns are not evaluated.
    """

    def __init__(self, library: Optional[PatternLibrary] = None):
        library = library or get_default_library()
        block = library.role_confusion
        self.confidence = float(block["confidence"])
        self.patterns = tuple(
            (entry["name"], compile_pattern(entry, re.IGNORECASE))
            for entry in block["patterns"]
        )

    def analyze(self, text: str) -> DetectorResult:
        for name, regex in self.patterns:
            found = regex.search(text)
            if found:
                return DetectorResult(
                    detected=True,
                    confidence=self.confidence,
                    evidence=(found.group(0),),
                    pattern=name,
                )
        return DetectorResult.negative()
