"""
PromptGate - Analysis Engine
Version: 1.0.0

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved

Public entry point of the classification pipeline:

    caller → rate limiter → cache (single-flight) → detectors → aggregator
           → cache store → audit sink → AnalysisResult

Interface contract
------------------
``analyze()`` never raises for anything the input or context can cause.
Any failure inside the pipeline returns ``risk=ERROR, confidence=0`` with
the exception message in ``error``.  Callers MUST treat ``ERROR`` exactly
like ``HIGH`` and block the request; ``AnalysisResult.should_block``
encodes that rule.  The only exception ``analyze()`` lets through is
``ConfigurationError``, raised before any analysis when the supplied config
is invalid.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from asyncio_throttle import Throttler

from promptgate.analyzers.base import RiskLevel
from promptgate.analyzers.context_pollution import ContextPollutionDetector
from promptgate.analyzers.encoding_detector import EncodingDetector
from promptgate.analyzers.instruction_override import InstructionOverrideDetector
from promptgate.analyzers.pattern_analyzer import (
    PatternAnalyzer,
    PatternMatch,
    PatternScanResult,
)
from promptgate.analyzers.risk_aggregator import DetectorOutputs, RiskAggregator
from promptgate.analyzers.role_confusion import RoleConfusionDetector
from promptgate.analyzers.semantic_analyzer import (
    SemanticAnalysisResult,
    SemanticAnalyzer,
)
from promptgate.audit import AuditSink, LoggingAuditSink, resolve_sink
from promptgate.cache import ResultCache, cache_key
from promptgate.data.threat_patterns import (
    PatternLibrary,
    get_threat_statistics,
    load_pattern_library,
)
from promptgate.exceptions import InputBlockedError
from promptgate.utils.config import AnalyzerConfig
from promptgate.utils.logger import get_logger
from promptgate.versions import DETECTOR_VERSIONS, FEATURES, __version__

logger = logging.getLogger(__name__)

ContextLike = Union["AnalysisContext", Mapping[str, Any], None]
ConfigLike = Union[AnalyzerConfig, Mapping[str, Any], None]

_CONTEXT_KEYS = {
    "conversation_history": "conversation_history",
    "conversationHistory": "conversation_history",
    "user_role": "user_role",
    "userRole": "user_role",
    "application_domain": "application_domain",
    "applicationDomain": "application_domain",
    "custom_rules": "custom_rules",
    "customRules": "custom_rules",
}


@dataclass(frozen=True)
class AnalysisContext:
    """Caller-supplied conversation context"""
    conversation_history: Tuple[str, ...] = ()
    user_role: Optional[str] = None
    application_domain: Optional[str] = None
    custom_rules: Optional[Any] = None  # reserved, not read by any detector

    @classmethod
    def coerce(cls, value: ContextLike) -> "AnalysisContext":
        """
        Accept None, an ``AnalysisContext`` or a mapping (snake_case or
        camelCase keys).  Raises ``TypeError`` for anything malformed.
        """
        if value is None:
            return cls()
        if isinstance(value, AnalysisContext):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"context must be a mapping, got {type(value).__name__}")

        fields_: Dict[str, Any] = {}
        for key, item in value.items():
            name = _CONTEXT_KEYS.get(key)
            if name is not None:
                fields_[name] = item

        return cls(
            conversation_history=_coerce_history(fields_.get("conversation_history")),
            user_role=_optional_str("user_role", fields_.get("user_role")),
            application_domain=_optional_str(
                "application_domain", fields_.get("application_domain")
            ),
            custom_rules=fields_.get("custom_rules"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversation_history": list(self.conversation_history),
            "user_role": self.user_role,
            "application_domain": self.application_domain,
            "custom_rules": self.custom_rules,
        }


def _coerce_history(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise TypeError(
            f"conversation_history must be a sequence of strings, got {type(value).__name__}"
        )
    for turn in value:
        if not isinstance(turn, str):
            raise TypeError(
                f"conversation_history entries must be strings, got {type(turn).__name__}"
            )
    return tuple(value)


def _optional_str(name: str, value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise TypeError(f"{name} must be a string, got {type(value).__name__}")


@dataclass(frozen=True)
class AnalysisRequest:
    """One call to ``analyze``; handed to audit sinks"""
    input: Any
    context: Any
    config: AnalyzerConfig


@dataclass(frozen=True)
class AnalysisResult:
    """Public analysis verdict.  Never mutated once returned."""
    risk: RiskLevel
    confidence: float  # 0.0 to 1.0
    detected_patterns: Tuple[PatternMatch, ...] = ()
    reasoning: Tuple[str, ...] = ()
    processing_time_ms: int = 0
    error: Optional[str] = None
    triggered_rules: Tuple[str, ...] = ()
    pattern_library_version: Optional[str] = None

    @property
    def should_block(self) -> bool:
        """ERROR is handled exactly like HIGH (fail-closed)."""
        return self.risk in (RiskLevel.HIGH, RiskLevel.ERROR)

    @property
    def is_error(self) -> bool:
        return self.risk is RiskLevel.ERROR

    def without_evidence(self) -> "AnalysisResult":
        return replace(
            self,
            detected_patterns=tuple(
                replace(m, matched_text=None) for m in self.detected_patterns
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape consumed by middleware and dashboards."""
        out: Dict[str, Any] = {
            "risk": self.risk.value,
            "confidence": self.confidence,
            "detectedPatterns": [m.to_dict() for m in self.detected_patterns],
            "reasoning": list(self.reasoning),
            "processingTime": self.processing_time_ms,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


class PromptGate:
    """
    PromptGate - Main Interface

    Usage:
        gate = PromptGate()
        result = await gate.analyze("Ignore all previous instructions")
        if result.should_block:
            ...
    """

    def __init__(
        self,
        config: ConfigLike = None,
        *,
        cache: Optional[ResultCache] = None,
        audit_sink: Optional[Any] = None,
        pattern_library: Optional[PatternLibrary] = None,
        aggregator: Optional[RiskAggregator] = None,
    ):
        self.config = AnalyzerConfig.coerce(config)
        get_logger().setLevel(self.config.log_level.upper())

        self.pattern_library = pattern_library or load_pattern_library(
            self.config.pattern_library_path
        )
        self.pattern_analyzer = PatternAnalyzer(self.pattern_library)
        self.instruction_override = InstructionOverrideDetector(self.pattern_library)
        self.role_confusion = RoleConfusionDetector(self.pattern_library)
        self.context_pollution = ContextPollutionDetector(self.pattern_library)
        self.encoding = EncodingDetector(self.pattern_library)
        self.semantic = SemanticAnalyzer(self.pattern_library)
        self.aggregator = aggregator or RiskAggregator()

        self.cache = cache if cache is not None else ResultCache(
            ttl_seconds=self.config.cache_ttl_seconds,
            max_entries=self.config.cache_max_entries,
        )
        self.audit_sink: Optional[AuditSink] = (
            resolve_sink(audit_sink) if audit_sink is not None else None
        )
        self._fallback_sink = LoggingAuditSink()

        self._throttler: Optional[Throttler] = None
        self._throttler_rpm: int = 0

        self._stats_lock = threading.Lock()
        self.stats: Dict[str, Any] = {
            "total_analyses": 0,
            "cache_hits": 0,
            "errors": 0,
            "by_risk": {level.value: 0 for level in RiskLevel},
        }

        logger.info(
            "PromptGate %s ready (pattern library %s, %d rules)",
            __version__, self.pattern_library.version, len(self.aggregator.rules),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def analyze(
        self,
        text: str,
        context: ContextLike = None,
        config: ConfigLike = None,
    ) -> AnalysisResult:
        """
        Classify *text*.

        Args:
            text:    User input, any length.
            context: ``AnalysisContext`` or mapping (conversation history,
                     user role, application domain).
            config:  Per-call ``AnalyzerConfig`` or mapping of overrides
                     layered over this instance's config.

        Returns:
            AnalysisResult; ``ERROR`` on any internal failure.

        Raises:
            ConfigurationError: *config* is invalid.
        """
        cfg = AnalyzerConfig.coerce(config, base=self.config)
        start = time.perf_counter()

        await self._throttle(cfg)

        from_cache = False
        try:
            result, from_cache = await self._evaluate(text, context, cfg, start)
        except Exception as exc:  # noqa: BLE001
            result = self._error_result(exc, start)

        if not cfg.include_evidence:
            result = result.without_evidence()

        self._record(result, from_cache)
        if cfg.enable_audit_logging:
            self._notify(text, context, cfg, result)
        return result

    def analyze_sync(
        self,
        text: str,
        context: ContextLike = None,
        config: ConfigLike = None,
    ) -> AnalysisResult:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.analyze(text, context, config))

    async def guard(
        self,
        text: str,
        context: ContextLike = None,
        config: ConfigLike = None,
        block_medium: bool = False,
    ) -> AnalysisResult:
        """
        Analyse *text* and raise ``InputBlockedError`` when it must not reach
        the model (HIGH or ERROR, plus MEDIUM when *block_medium*).
        """
        result = await self.analyze(text, context, config)
        if result.should_block or (block_medium and result.risk is RiskLevel.MEDIUM):
            reasons = ", ".join(result.reasoning[:2]) or result.error or "no detail"
            raise InputBlockedError(
                result, f"Input blocked: {result.risk.value} risk ({reasons})"
            )
        return result

    def detect(self, text: str, context: AnalysisContext, cfg: AnalyzerConfig) -> DetectorOutputs:
        """Run every detector in pipeline order."""
        if cfg.enable_pattern_matching:
            patterns = self.pattern_analyzer.analyze(text)
        else:
            patterns = PatternScanResult(matches=(), max_risk=0.0)

        if cfg.enable_semantic_analysis:
            semantic = self.semantic.analyze(text)
        else:
            semantic = SemanticAnalysisResult(risk=RiskLevel.LOW, confidence=0.0)

        return DetectorOutputs(
            patterns=patterns,
            instruction_override=self.instruction_override.analyze(text),
            role_confusion=self.role_confusion.analyze(text),
            context_pollution=self.context_pollution.analyze(
                text, context.conversation_history
            ),
            encoding=self.encoding.analyze(text),
            semantic=semantic,
        )

    def get_config(self) -> AnalyzerConfig:
        return self.config.merged()

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()

    def get_stats(self) -> Dict[str, Any]:
        """Get comprehensive engine statistics"""
        with self._stats_lock:
            analyses = {
                **{k: v for k, v in self.stats.items() if k != "by_risk"},
                "by_risk": dict(self.stats["by_risk"]),
            }
        return {
            "version": __version__,
            "features": dict(FEATURES),
            "detectors": dict(DETECTOR_VERSIONS),
            "pattern_library": get_threat_statistics(self.pattern_library),
            "rules": self.aggregator.describe(),
            "cache": self.cache.get_stats(),
            "analyses": analyses,
            "config": self.config.to_dict(),
        }

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _evaluate(
        self,
        text: str,
        context: ContextLike,
        cfg: AnalyzerConfig,
        start: float,
    ) -> Tuple[AnalysisResult, bool]:
        key = self._cache_key(text, context) if self._cacheable(cfg) else None
        if key is None:
            return self._run_pipeline(text, context, cfg, start), False

        async def compute() -> AnalysisResult:
            # runs in the default executor so same-key callers overlap
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None, self._run_pipeline, text, context, cfg, start
            )

        return await self.cache.get_or_compute(key, compute)

    def _run_pipeline(
        self,
        text: str,
        context: ContextLike,
        cfg: AnalyzerConfig,
        start: float,
    ) -> AnalysisResult:
        if not isinstance(text, str):
            raise TypeError(f"input must be a string, got {type(text).__name__}")
        ctx = AnalysisContext.coerce(context)

        outputs = self.detect(text, ctx, cfg)
        verdict = self.aggregator.fold(outputs)

        return AnalysisResult(
            risk=verdict.risk,
            confidence=verdict.confidence,
            detected_patterns=outputs.patterns.matches,
            reasoning=verdict.reasoning,
            processing_time_ms=_elapsed_ms(start),
            triggered_rules=verdict.triggered_rules,
            pattern_library_version=self.pattern_library.version,
        )

    def _cacheable(self, cfg: AnalyzerConfig) -> bool:
        # Results from a different detector selection must not share entries.
        return cfg.enable_caching and (
            cfg.enable_pattern_matching == self.config.enable_pattern_matching
            and cfg.enable_semantic_analysis == self.config.enable_semantic_analysis
        )

    def _cache_key(self, text: str, context: ContextLike) -> Optional[str]:
        """SHA-256 key, or None when the request cannot be keyed."""
        try:
            return cache_key(text, AnalysisContext.coerce(context).to_dict())
        except Exception as exc:  # noqa: BLE001
            logger.debug("PromptGate: cache key unavailable, analysing uncached: %s", exc)
            return None

    async def _throttle(self, cfg: AnalyzerConfig) -> None:
        rpm = cfg.max_requests_per_minute
        if not rpm:
            return
        if self._throttler is None or self._throttler_rpm != rpm:
            self._throttler = Throttler(rate_limit=rpm, period=60)
            self._throttler_rpm = rpm
        async with self._throttler:
            pass  # acquire a slot; blocks while over the limit

    # ------------------------------------------------------------------
    # Result helpers
    # ------------------------------------------------------------------

    def _error_result(self, exc: BaseException, start: float) -> AnalysisResult:
        """ERROR verdict; callers treat it as HIGH."""
        message = str(exc) or type(exc).__name__
        logger.error("PromptGate analysis error, returning ERROR (fail-closed): %s", message)
        return AnalysisResult(
            risk=RiskLevel.ERROR,
            confidence=0.0,
            processing_time_ms=_elapsed_ms(start),
            error=message,
            pattern_library_version=self.pattern_library.version,
        )

    def _record(self, result: AnalysisResult, from_cache: bool) -> None:
        with self._stats_lock:
            self.stats["total_analyses"] += 1
            self.stats["by_risk"][result.risk.value] += 1
            if from_cache:
                self.stats["cache_hits"] += 1
            if result.is_error:
                self.stats["errors"] += 1

    def _notify(
        self,
        text: Any,
        context: ContextLike,
        cfg: AnalyzerConfig,
        result: AnalysisResult,
    ) -> None:
        """Hand the verdict to the audit sink; sink failures are logged only."""
        try:
            sink = (
                resolve_sink(cfg.audit_logger)
                if cfg.audit_logger is not None
                else self.audit_sink or self._fallback_sink
            )
            try:
                ctx: Any = AnalysisContext.coerce(context)
            except TypeError:
                ctx = context
            request = AnalysisRequest(input=text, context=ctx, config=cfg)
            sink.notify(request, result, datetime.now(timezone.utc))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Audit sink failed (non-fatal): %s", exc)


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

_default_gate: Optional[PromptGate] = None


def get_default_gate() -> PromptGate:
    """Process-wide engine built from ``PROMPTGATE_*`` environment variables."""
    global _default_gate
    if _default_gate is None:
        _default_gate = PromptGate(AnalyzerConfig.from_env())
    return _default_gate


async def analyze(
    text: str,
    context: ContextLike = None,
    config: ConfigLike = None,
) -> AnalysisResult:
    """Convenience function for one-off analysis with the default engine"""
    return await get_default_gate().analyze(text, context, config)


def create_analyzer(config: ConfigLike = None, **options: Any) -> PromptGate:
    """
    Build a ``PromptGate`` from a config and/or keyword overrides.

    Keyword options use the ``AnalyzerConfig`` field names (camelCase is
    accepted as well).
    """
    base = AnalyzerConfig.coerce(config)
    if options:
        base = AnalyzerConfig.from_mapping(options, base=base)
    return PromptGate(base)
