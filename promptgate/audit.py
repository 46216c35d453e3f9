"""
PromptGate — Audit Sinks
Version: 1.0.0

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved

Every completed analysis (ERROR verdicts and cache hits included) can be
handed to an audit sink when ``enable_audit_logging`` is set.  A sink is any
object with ``notify(request, result, timestamp)``; plain callables with the
same signature are wrapped in ``CallbackAuditSink``.

Delivery is fire-and-forget: the engine logs and discards any exception a
sink raises, so a broken sink can never change a verdict.

The file sink (``AuditLogger``) records decisions and metadata, never raw
prompt text.  Text is stored only as a SHA-256 fingerprint.

Log location: ~/.promptgate/audit.log  (JSON Lines, one record per line)
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default log directory / file
# ---------------------------------------------------------------------------
_DEFAULT_LOG_DIR = Path.home() / ".promptgate"
_DEFAULT_LOG_FILE = _DEFAULT_LOG_DIR / "audit.log"


@runtime_checkable
class AuditSink(Protocol):
    """Receives every verdict for observability."""

    def notify(self, request: Any, result: Any, timestamp: datetime) -> None:
        ...


def fingerprint(text: Any) -> str:
    """Short SHA-256 fingerprint of *text*; never the text itself."""
    raw = text if isinstance(text, str) else repr(text)
    return hashlib.sha256(raw.encode("utf-8", errors="replace")).hexdigest()[:16]


def build_record(request: Any, result: Any, timestamp: datetime) -> Dict[str, Any]:
    """
    Flatten one analysis into a JSON-safe audit record.

    Works from public attributes only, so any object shaped like an
    ``AnalysisRequest`` / ``AnalysisResult`` is accepted.
    """
    text = getattr(request, "input", "")
    context = getattr(request, "context", None)
    risk = getattr(result, "risk", None)
    history = getattr(context, "conversation_history", None) or ()

    return {
        "ts": timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        "text_hash": fingerprint(text),
        "text_length": len(text) if isinstance(text, str) else None,
        "risk": getattr(risk, "value", risk),
        "confidence": round(float(getattr(result, "confidence", 0.0)), 4),
        "detected_patterns": [
            getattr(m, "name", None) for m in getattr(result, "detected_patterns", ())
        ],
        "reasoning": list(getattr(result, "reasoning", ())),
        "processing_time_ms": getattr(result, "processing_time_ms", None),
        "error": getattr(result, "error", None),
        "context": {
            "history_turns": len(history) if isinstance(history, (list, tuple)) else None,
            "user_role": getattr(context, "user_role", None),
            "application_domain": getattr(context, "application_domain", None),
        },
    }


class CallbackAuditSink:
    """Adapts a plain ``callback(request, result, timestamp)`` to ``AuditSink``."""

    def __init__(self, callback: Callable[[Any, Any, datetime], Any]) -> None:
        if not callable(callback):
            raise TypeError("callback must be callable")
        self.callback = callback

    def notify(self, request: Any, result: Any, timestamp: datetime) -> None:
        self.callback(request, result, timestamp)


class LoggingAuditSink:
    """Writes one structured line per verdict through standard logging."""

    def __init__(self, logger_name: str = "promptgate.audit", level: int = logging.INFO) -> None:
        self._logger = logging.getLogger(logger_name)
        self.level = level

    def notify(self, request: Any, result: Any, timestamp: datetime) -> None:
        record = build_record(request, result, timestamp)
        self._logger.log(self.level, "audit %s", json.dumps(record, ensure_ascii=False))


class AuditLogger:
    """
    Append-only JSON Lines audit sink.

    Each ``notify()`` appends a single JSON object (terminated by ``\\n``).
    The file is opened and closed for every write so a killed process never
    leaves earlier records corrupted.
    """

    def __init__(
        self,
        log_path: Optional[Path] = None,
        enabled: bool = True,
    ) -> None:
        self.log_path = Path(log_path) if log_path else _DEFAULT_LOG_FILE
        self.enabled = enabled
        self._records_written: int = 0

        if self.enabled:
            self._ensure_log_dir()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def notify(self, request: Any, result: Any, timestamp: datetime) -> None:
        """Append one audit record to the log."""
        if not self.enabled:
            return
        self._append(build_record(request, result, timestamp))

    def get_stats(self) -> Dict[str, Any]:
        """Return basic stats about this logger instance."""
        return {
            "enabled": self.enabled,
            "log_path": str(self.log_path),
            "records_written_this_session": self._records_written,
            "log_exists": self.log_path.exists(),
            "log_size_bytes": self.log_path.stat().st_size if self.log_path.exists() else 0,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_log_dir(self) -> None:
        """Create the log directory if it does not exist."""
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning(
                "AuditLogger: could not create log directory %s: %s; "
                "audit logging disabled for this session.",
                self.log_path.parent,
                exc,
            )
            self.enabled = False

    def _append(self, entry: Dict[str, Any]) -> None:
        """Write one JSON record to the log file."""
        try:
            line = json.dumps(entry, ensure_ascii=False) + "\n"
            with open(self.log_path, "a", encoding="utf-8") as fh:
                fh.write(line)
            self._records_written += 1
        except OSError as exc:
            logger.error(
                "AuditLogger: failed to write record: %s; continuing without audit log.",
                exc,
            )


def resolve_sink(candidate: Any) -> AuditSink:
    """Return *candidate* as an ``AuditSink``, wrapping bare callables."""
    if isinstance(candidate, AuditSink):
        return candidate
    if callable(candidate):
        return CallbackAuditSink(candidate)
    raise TypeError(
        f"audit sink must be callable or expose notify(), got {type(candidate).__name__}"
    )

