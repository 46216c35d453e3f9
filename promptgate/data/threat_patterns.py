"""
PromptGate — Threat Pattern Library

Version: 1.0.0

Every pattern list the detectors consume lives here as plain data, grouped
by detector.  The embedded library is the default; a JSON file with the same
shape (see ``export_pattern_library``) can replace it at runtime so pattern
updates ship without a code release.

Injection patterns are matched against the lower-cased input.  Role
confusion, encoding and semantic patterns are matched against the raw input
with ``re.IGNORECASE`` where noted by the analyzer.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""
from __future__ import annotations

import copy
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from promptgate.exceptions import PatternLibraryError

logger = logging.getLogger(__name__)

PATTERN_LIBRARY_VERSION = "1.0.0"

SEMANTIC_RISK_LABELS = ("MEDIUM", "HIGH")

# Every injection pattern weight, embedded or loaded, stays inside this band
INJECTION_RISK_RANGE = (0.6, 0.9)


# ---------------------------------------------------------------------------
# Embedded library
# ---------------------------------------------------------------------------

DEFAULT_LIBRARY: Dict[str, Any] = {
    "version": PATTERN_LIBRARY_VERSION,

    # ------------------------------------------------------------------
    # Structural / lexical injection signatures.  All are evaluated; the
    # heaviest weight wins.
    # ------------------------------------------------------------------
    "injection_patterns": [
        {
            "name": "direct_instruction_override",
            "pattern": r"ignore\s+(?:(?:all|any|previous|prior|above|earlier|system|your|the)\s+)*instructions?",
            "risk": 0.9,
            "description": "Direct request to ignore existing instructions",
        },
        {
            "name": "jailbreak_attempt",
            "pattern": r"(?:jailbreak|break\s+(?:out|free)|escape\s+(?:mode|restrictions))",
            "risk": 0.85,
            "description": "Jailbreak or restriction-escape vocabulary",
        },
        {
            "name": "system_manipulation",
            "pattern": r"(?:system\s+(?:prompt|message)|override\s+(?:system|mode)|developer\s+(?:mode|access))",
            "risk": 0.8,
            "description": "References to system prompts or privileged modes",
        },
        {
            "name": "role_switching",
            "pattern": r"(?:act\s+as|pretend\s+(?:to\s+be|you\s+are)|you\s+are\s+now|become\s+a)",
            "risk": 0.7,
            "description": "Attempts to switch the assistant's role",
        },
        {
            "name": "instruction_injection",
            "pattern": r"(?:new\s+(?:instructions?|rules?|commands?)|change\s+(?:your|the)\s+(?:behaviou?r|role))",
            "risk": 0.75,
            "description": "Injection of replacement instructions",
        },
        {
            "name": "delimiter_confusion",
            "pattern": r"(?:-{3,}|\*{3,}|#{3,}|={3,})",
            "risk": 0.6,
            "description": "Delimiter runs used to fake prompt boundaries",
        },
    ],

    # ------------------------------------------------------------------
    # Instruction-override phrases (substring, case-insensitive)
    # ------------------------------------------------------------------
    "instruction_overrides": {
        "confidence": 0.8,
        "phrases": [
            "ignore previous instructions",
            "ignore all previous instructions",
            "disregard above",
            "disregard previous instructions",
            "new instructions",
            "override system",
            "forget everything",
            "new role",
            "don't follow",
            "do not follow",
        ],
    },

    # ------------------------------------------------------------------
    # Role confusion (first match wins)
    # ------------------------------------------------------------------
    "role_confusion": {
        "confidence": 0.75,
        "patterns": [
            {
                "name": "privileged_persona",
                "pattern": r"you\s+are\s+(?:now\s+|actually\s+)?an?\s+(?:hacker|developer|admin(?:istrator)?|system)\b",
            },
            {
                "name": "persona_replacement",
                "pattern": r"pretend\s+(?:to\s+be\s+|you\s+are\s+)?an?\s+(?:different|new)\s+(?:person|ai|assistant)",
            },
            {
                "name": "unrestricted_persona",
                "pattern": r"act\s+(?:like|as)\s+(?:if\s+)?(?:you\s+are\s+|you're\s+)?(?:an?\s+)?(?:jailbroken|unrestricted|unfiltered|free)\b",
            },
            {
                "name": "malicious_roleplay",
                "pattern": r"roleplay\s+as\s+an?\s+(?:criminal|hacker|villain)",
            },
        ],
    },

    # ------------------------------------------------------------------
    # Claims of shared history (only suspicious without real history)
    # ------------------------------------------------------------------
    "context_pollution": {
        "confidence": 0.7,
        "indicators": [
            "previous conversation",
            "earlier we discussed",
            "as we discussed earlier",
            "as we agreed before",
            "continuing from where we left off",
            "based on our previous chat",
            "like you said before",
            "you already agreed",
        ],
    },

    # ------------------------------------------------------------------
    # Encoding / obfuscation structure (any match is sufficient)
    # ------------------------------------------------------------------
    "encoding": {
        "confidence": 0.85,
        "patterns": [
            {"name": "base64_run", "pattern": r"[A-Za-z0-9+/]{20,}={0,2}"},
            {"name": "hex_escape", "pattern": r"\\x[0-9a-fA-F]{2}"},
            {"name": "unicode_escape", "pattern": r"\\u[0-9a-fA-F]{4}"},
            {"name": "cipher_run", "pattern": r"\b[a-z]{16,}\b"},
            {"name": "special_char_run", "pattern": r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?~`]{5,}"},
        ],
    },

    # ------------------------------------------------------------------
    # Intent-level threats (first match wins, label is applied directly)
    # ------------------------------------------------------------------
    "semantic_threats": [
        {
            "name": "persuasion",
            "pattern": r"(?:convince|persuade|force|make)\s+(?:you|me|us)\s+(?:to|into)",
            "risk": "MEDIUM",
            "confidence": 0.7,
            "reason": "Persuasion attempt detected",
        },
        {
            "name": "information_extraction",
            "pattern": r"(?:secret|hidden|confidential|private)\s+(?:information|data|prompt|instructions?)",
            "risk": "HIGH",
            "confidence": 0.8,
            "reason": "Information extraction attempt",
        },
        {
            "name": "security_bypass",
            "pattern": r"(?:bypass|circumvent|avoid|skip)\s+(?:the\s+|your\s+)?(?:safety|security|restrictions?|filters?)",
            "risk": "HIGH",
            "confidence": 0.85,
            "reason": "Security bypass attempt",
        },
        {
            "name": "system_extraction",
            "pattern": r"(?:tell|show|reveal|give)\s+(?:me\s+)?(?:your|the)\s+(?:system|internal|hidden)",
            "risk": "HIGH",
            "confidence": 0.8,
            "reason": "System information extraction attempt",
        },
    ],
}


# ---------------------------------------------------------------------------
# Library container
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PatternLibrary:
    """A validated, versioned set of detector patterns."""
    version: str
    source: str
    injection_patterns: Tuple[Dict[str, Any], ...]
    instruction_overrides: Dict[str, Any]
    role_confusion: Dict[str, Any]
    context_pollution: Dict[str, Any]
    encoding: Dict[str, Any]
    semantic_threats: Tuple[Dict[str, Any], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "injection_patterns": [dict(p) for p in self.injection_patterns],
            "instruction_overrides": copy.deepcopy(self.instruction_overrides),
            "role_confusion": copy.deepcopy(self.role_confusion),
            "context_pollution": copy.deepcopy(self.context_pollution),
            "encoding": copy.deepcopy(self.encoding),
            "semantic_threats": [dict(p) for p in self.semantic_threats],
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def compile_pattern(entry: Dict[str, Any], flags: int = 0) -> "re.Pattern[str]":
    """Compile *entry['pattern']*, naming the entry on failure."""
    try:
        return re.compile(entry["pattern"], flags)
    except re.error as exc:
        raise PatternLibraryError(
            f"Pattern {entry.get('name', '?')!r} does not compile: {exc}"
        ) from exc


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise PatternLibraryError(message)


def _check_confidence(section: str, value: Any) -> None:
    _require(
        isinstance(value, (int, float)) and not isinstance(value, bool) and 0.0 <= value <= 1.0,
        f"{section}.confidence must be a number in [0, 1], got {value!r}",
    )


def _check_named_patterns(section: str, entries: Any) -> None:
    _require(isinstance(entries, list) and entries, f"{section} must be a non-empty list")
    seen = set()
    for entry in entries:
        _require(isinstance(entry, dict), f"{section} entries must be objects")
        name = entry.get("name")
        _require(isinstance(name, str) and name, f"{section} entry is missing a name")
        _require(name not in seen, f"{section} has duplicate pattern name {name!r}")
        seen.add(name)
        _require(
            isinstance(entry.get("pattern"), str),
            f"{section}.{name} is missing a pattern string",
        )
        compile_pattern(entry)


def validate_library(data: Any, source: str = "<memory>") -> PatternLibrary:
    """Validate raw library data and wrap it in a ``PatternLibrary``."""
    _require(isinstance(data, dict), f"{source}: pattern library must be a JSON object")

    version = data.get("version")
    _require(isinstance(version, str) and version, f"{source}: missing library version")

    injection = data.get("injection_patterns")
    _check_named_patterns("injection_patterns", injection)
    low, high = INJECTION_RISK_RANGE
    for entry in injection:
        risk = entry.get("risk")
        _require(
            isinstance(risk, (int, float)) and not isinstance(risk, bool) and low <= risk <= high,
            f"injection_patterns.{entry['name']}.risk must be in [{low}, {high}], got {risk!r}",
        )

    overrides = data.get("instruction_overrides")
    _require(isinstance(overrides, dict), "instruction_overrides must be an object")
    _check_confidence("instruction_overrides", overrides.get("confidence"))
    phrases = overrides.get("phrases")
    _require(
        isinstance(phrases, list) and phrases and all(isinstance(p, str) and p for p in phrases),
        "instruction_overrides.phrases must be a non-empty list of strings",
    )

    for section in ("role_confusion", "encoding"):
        block = data.get(section)
        _require(isinstance(block, dict), f"{section} must be an object")
        _check_confidence(section, block.get("confidence"))
        _check_named_patterns(f"{section}.patterns", block.get("patterns"))

    pollution = data.get("context_pollution")
    _require(isinstance(pollution, dict), "context_pollution must be an object")
    _check_confidence("context_pollution", pollution.get("confidence"))
    indicators = pollution.get("indicators")
    _require(
        isinstance(indicators, list) and indicators and all(isinstance(i, str) and i for i in indicators),
        "context_pollution.indicators must be a non-empty list of strings",
    )

    semantic = data.get("semantic_threats")
    _check_named_patterns("semantic_threats", semantic)
    for entry in semantic:
        _require(
            entry.get("risk") in SEMANTIC_RISK_LABELS,
            f"semantic_threats.{entry['name']}.risk must be one of {SEMANTIC_RISK_LABELS}",
        )
        _check_confidence(f"semantic_threats.{entry['name']}", entry.get("confidence"))

    return PatternLibrary(
        version=version,
        source=source,
        injection_patterns=tuple(dict(p) for p in injection),
        instruction_overrides=copy.deepcopy(overrides),
        role_confusion=copy.deepcopy(data["role_confusion"]),
        context_pollution=copy.deepcopy(pollution),
        encoding=copy.deepcopy(data["encoding"]),
        semantic_threats=tuple(dict(p) for p in semantic),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

_default_library: Optional[PatternLibrary] = None


def get_default_library() -> PatternLibrary:
    """Return the embedded library (validated once per process)."""
    global _default_library
    if _default_library is None:
        _default_library = validate_library(DEFAULT_LIBRARY, source="embedded")
    return _default_library


def load_pattern_library(path: Optional[Union[str, Path]] = None) -> PatternLibrary:
    """
    Load a pattern library.

    Args:
        path: JSON file in the ``export_pattern_library`` format.  ``None``
              returns the embedded library.

    Raises:
        PatternLibraryError: unreadable file, invalid JSON, or invalid content.
    """
    if path is None:
        return get_default_library()

    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise PatternLibraryError(f"Cannot read pattern library {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise PatternLibraryError(f"Pattern library {path} is not valid JSON: {exc}") from exc

    library = validate_library(raw, source=str(path))
    logger.info("Pattern library %s loaded from %s", library.version, path)
    return library


def export_pattern_library(
    path: Union[str, Path],
    library: Optional[PatternLibrary] = None,
) -> Path:
    """Write *library* (default: embedded) as JSON so it can be edited and reloaded."""
    library = library or get_default_library()
    path = Path(path)
    path.write_text(json.dumps(library.to_dict(), indent=2) + "\n", encoding="utf-8")
    return path


def get_all_patterns(library: Optional[PatternLibrary] = None) -> List[Dict[str, Any]]:
    """Flat list of injection pattern entries, in evaluation order."""
    library = library or get_default_library()
    return [dict(p) for p in library.injection_patterns]


def get_threat_statistics(library: Optional[PatternLibrary] = None) -> Dict[str, Any]:
    """Return a statistics summary for *library*."""
    library = library or get_default_library()
    weights = [p["risk"] for p in library.injection_patterns]
    return {
        "version":                  library.version,
        "source":                   library.source,
        "injectionPatterns":        len(library.injection_patterns),
        "overridePhrases":          len(library.instruction_overrides["phrases"]),
        "roleConfusionPatterns":    len(library.role_confusion["patterns"]),
        "contextPollutionIndicators": len(library.context_pollution["indicators"]),
        "encodingPatterns":         len(library.encoding["patterns"]),
        "semanticThreats":          len(library.semantic_threats),
        "injectionRiskRange":       [min(weights), max(weights)],
    }


# ---------------------------------------------------------------------------
# Standalone check
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    print(json.dumps(get_threat_statistics(), indent=2))
