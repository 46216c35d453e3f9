"""
PromptGate - Exceptions

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""


class PromptGateError(Exception):
    """Base class for every error PromptGate raises on purpose."""


class ConfigurationError(PromptGateError, ValueError):
    """
    Raised when an ``AnalyzerConfig`` is built with an invalid value.

    Configuration problems are caller bugs, so they surface immediately
    instead of being folded into an ``ERROR`` verdict.
    """


class PatternLibraryError(PromptGateError):
    """Raised when a pattern library file cannot be read or compiled."""


class InputBlockedError(PromptGateError):
    """Raised by ``PromptGate.guard`` when a verdict says the input must not pass."""
    def __init__(self, analysis_result, message="Input blocked by PromptGate"):
        self.analysis_result = analysis_result
        super().__init__(message)
