"""Utilities module"""

from promptgate.utils.config import AnalyzerConfig
from promptgate.utils.logger import configure_logging, get_logger

__all__ = ["AnalyzerConfig", "configure_logging", "get_logger"]
