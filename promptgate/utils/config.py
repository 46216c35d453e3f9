"""Configuration management"""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Union

from promptgate.exceptions import ConfigurationError

PERFORMANCE_MODES = ("fast", "thorough")
SENSITIVITY_LEVELS = ("low", "medium", "high")

# camelCase spellings accepted from JSON payloads and JS-style callers
_CAMEL_CASE_KEYS = {
    "enableCaching": "enable_caching",
    "performanceMode": "performance_mode",
    "sensitivityLevel": "sensitivity_level",
    "includeEvidence": "include_evidence",
    "enableAuditLogging": "enable_audit_logging",
    "auditLogger": "audit_logger",
    "enablePatternMatching": "enable_pattern_matching",
    "enableSemanticAnalysis": "enable_semantic_analysis",
    "cacheTtlSeconds": "cache_ttl_seconds",
    "cacheMaxEntries": "cache_max_entries",
    "patternLibraryPath": "pattern_library_path",
    "maxRequestsPerMinute": "max_requests_per_minute",
    "logLevel": "log_level",
}

_BOOL_FIELDS = (
    "enable_caching",
    "include_evidence",
    "enable_audit_logging",
    "enable_pattern_matching",
    "enable_semantic_analysis",
)


@dataclass
class AnalyzerConfig:
    """PromptGate analyzer configuration"""
    enable_caching: bool = True

    # Accepted and validated, but not wired into any threshold yet.
    # TODO: scale the pattern threshold and detector confidences by
    # sensitivity_level, and skip the semantic pass in "fast" mode, once
    # calibration data for both exists.
    performance_mode: str = "thorough"
    sensitivity_level: str = "medium"

    # When False, PatternMatch.matched_text is None in every result.
    include_evidence: bool = True

    # Audit sink; a callable(request, result, timestamp) or any object
    # exposing notify(request, result, timestamp).
    enable_audit_logging: bool = False
    audit_logger: Optional[Any] = None

    # Detector toggles
    enable_pattern_matching: bool = True
    enable_semantic_analysis: bool = True

    # Result cache
    cache_ttl_seconds: float = 300.0      # 5 minutes, 0 = never expire
    cache_max_entries: int = 10_000

    # Versioned pattern library override (JSON).  Read once, when the
    # PromptGate instance is built.
    pattern_library_path: Optional[str] = None

    # Rate limiting; 0 = unlimited
    max_requests_per_minute: int = 0

    # Logging
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Fail fast on any invalid value."""
        for name in _BOOL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(
                    f"{name} must be a bool, got {type(value).__name__}: {value!r}"
                )

        if self.performance_mode not in PERFORMANCE_MODES:
            raise ConfigurationError(
                f"performance_mode must be one of {PERFORMANCE_MODES}, "
                f"got {self.performance_mode!r}"
            )
        if self.sensitivity_level not in SENSITIVITY_LEVELS:
            raise ConfigurationError(
                f"sensitivity_level must be one of {SENSITIVITY_LEVELS}, "
                f"got {self.sensitivity_level!r}"
            )

        if (
            isinstance(self.cache_ttl_seconds, bool)
            or not isinstance(self.cache_ttl_seconds, (int, float))
            or self.cache_ttl_seconds < 0
        ):
            raise ConfigurationError(
                f"cache_ttl_seconds must be a number >= 0, got {self.cache_ttl_seconds!r}"
            )
        if (
            isinstance(self.cache_max_entries, bool)
            or not isinstance(self.cache_max_entries, int)
            or self.cache_max_entries < 1
        ):
            raise ConfigurationError(
                f"cache_max_entries must be an int >= 1, got {self.cache_max_entries!r}"
            )
        if (
            isinstance(self.max_requests_per_minute, bool)
            or not isinstance(self.max_requests_per_minute, int)
            or self.max_requests_per_minute < 0
        ):
            raise ConfigurationError(
                "max_requests_per_minute must be an int >= 0, "
                f"got {self.max_requests_per_minute!r}"
            )

        if self.audit_logger is not None and not (
            callable(getattr(self.audit_logger, "notify", None))
            or callable(self.audit_logger)
        ):
            raise ConfigurationError(
                "audit_logger must be callable or expose notify(request, result, timestamp)"
            )

        if self.pattern_library_path is not None and not isinstance(
            self.pattern_library_path, (str, os.PathLike)
        ):
            raise ConfigurationError(
                f"pattern_library_path must be a path, got {self.pattern_library_path!r}"
            )

        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigurationError(f"log_level {self.log_level!r} is not a logging level")

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def merged(self, **overrides: Any) -> "AnalyzerConfig":
        """Return a validated copy with *overrides* applied."""
        return replace(self, **overrides)

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, Any],
        base: Optional["AnalyzerConfig"] = None,
    ) -> "AnalyzerConfig":
        """
        Build a config from a mapping of snake_case or camelCase keys.

        Unknown keys raise ``ConfigurationError`` rather than being dropped.
        """
        known = {f.name for f in fields(cls)}
        normalised: Dict[str, Any] = {}
        for key, value in values.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration option: {key!r}")
            normalised[name] = value

        if base is not None:
            return base.merged(**normalised)
        return cls(**normalised)

    @classmethod
    def coerce(
        cls,
        value: Union["AnalyzerConfig", Mapping[str, Any], None],
        base: Optional["AnalyzerConfig"] = None,
    ) -> "AnalyzerConfig":
        """Accept a config, a mapping layered over *base*, or None."""
        if value is None:
            return base if base is not None else cls()
        if isinstance(value, AnalyzerConfig):
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value, base=base)
        raise ConfigurationError(
            f"config must be an AnalyzerConfig or a mapping, got {type(value).__name__}"
        )

    @classmethod
    def from_env(cls) -> "AnalyzerConfig":
        """Load configuration from environment variables"""
        def _int_env(var: str, default: int) -> int:
            try:
                return int(os.getenv(var, str(default)))
            except ValueError:
                return default

        def _float_env(var: str, default: float) -> float:
            try:
                return float(os.getenv(var, str(default)))
            except ValueError:
                return default

        def _bool_env(var: str, default: bool) -> bool:
            return os.getenv(var, "true" if default else "false").lower() == "true"

        return cls(
            enable_caching=_bool_env("PROMPTGATE_CACHE_ENABLED", True),
            performance_mode=os.getenv("PROMPTGATE_PERFORMANCE_MODE", "thorough"),
            sensitivity_level=os.getenv("PROMPTGATE_SENSITIVITY", "medium"),
            include_evidence=_bool_env("PROMPTGATE_INCLUDE_EVIDENCE", True),
            enable_audit_logging=_bool_env("PROMPTGATE_AUDIT_LOGGING", False),
            cache_ttl_seconds=_float_env("PROMPTGATE_CACHE_TTL", 300.0),
            cache_max_entries=_int_env("PROMPTGATE_CACHE_MAX_ENTRIES", 10_000),
            pattern_library_path=os.getenv("PROMPTGATE_PATTERN_LIBRARY"),
            max_requests_per_minute=_int_env("PROMPTGATE_MAX_REQUESTS_PER_MINUTE", 0),
            log_level=os.getenv("PROMPTGATE_LOG_LEVEL", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialisable view; the audit callback is reported by name only."""
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        sink = out.pop("audit_logger")
        out["audit_logger"] = None if sink is None else type(sink).__name__
        if out["pattern_library_path"] is not None:
            out["pattern_library_path"] = str(out["pattern_library_path"])
        return out
