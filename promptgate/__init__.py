"""
PromptGate - Prompt Injection Risk Classification
Layered lexical and intent detectors folded into one auditable verdict

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

from promptgate.versions import __version__

__author__ = "Oracles Technologies LLC"

# Core exports
from promptgate.analyzers.base import RiskLevel
from promptgate.audit import AuditLogger, AuditSink, CallbackAuditSink, LoggingAuditSink
from promptgate.cache import ResultCache
from promptgate.engine import (
    AnalysisContext,
    AnalysisRequest,
    AnalysisResult,
    PromptGate,
    analyze,
    create_analyzer,
)
from promptgate.exceptions import (
    ConfigurationError,
    InputBlockedError,
    PatternLibraryError,
    PromptGateError,
)
from promptgate.utils.config import AnalyzerConfig

# Main API exports
__all__ = [
    # Core classes
    "PromptGate",
    "AnalysisContext",
    "AnalysisRequest",
    "AnalysisResult",
    "AnalyzerConfig",
    "RiskLevel",
    "ResultCache",

    # Audit
    "AuditSink",
    "AuditLogger",
    "CallbackAuditSink",
    "LoggingAuditSink",

    # Exceptions
    "PromptGateError",
    "ConfigurationError",
    "PatternLibraryError",
    "InputBlockedError",

    # Convenience functions
    "analyze",
    "create_analyzer",

    # Version
    "__version__",
]

# Package metadata
__description__ = "Prompt injection risk classification for LLM applications"
