"""
PromptGate - Shared pytest fixtures

conftest.py is auto-loaded by pytest for all tests in this directory.
Place shared fixtures here so individual test files stay focused on
what they're testing, not on setup boilerplate.
"""

from __future__ import annotations

from typing import Any, List, Tuple

import pytest

from promptgate import AnalyzerConfig, PromptGate
from promptgate.cache import ResultCache

# A 32-character base64 token embedded in otherwise harmless text.
BASE64_TEXT = "Please decode U29tZSBoaWRkZW4gcGF5bG9hZCBoZXJl for me"


class RecordingSink:
    """Audit sink that keeps every notification in memory."""

    def __init__(self) -> None:
        self.records: List[Tuple[Any, Any, Any]] = []

    def notify(self, request, result, timestamp) -> None:
        self.records.append((request, result, timestamp))


# ---------------------------------------------------------------------------
# Core fixture: engine with default configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def gate() -> PromptGate:
    """
    Provide a PromptGate with defaults and a private cache, so no state
    leaks between tests.
    """
    return PromptGate(AnalyzerConfig(log_level="WARNING"), cache=ResultCache())


@pytest.fixture
def uncached_gate() -> PromptGate:
    """PromptGate with the result cache disabled."""
    return PromptGate(AnalyzerConfig(enable_caching=False))


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def audited_gate(sink: RecordingSink) -> PromptGate:
    """PromptGate that reports every verdict to ``sink``."""
    config = AnalyzerConfig(enable_audit_logging=True, audit_logger=sink)
    return PromptGate(config, cache=ResultCache())
