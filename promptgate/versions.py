"""
PromptGate - Version Information
"""

__version__ = "1.0.0"
__version_info__ = tuple(map(int, __version__.split('.')))

# Build information
__build__ = "stable.1"
__release_date__ = "2026-10-19"

# Feature flags
FEATURES = {
    "pattern_matching": True,
    "semantic_analysis": True,
    "result_cache": True,
    "single_flight": True,
    "audit_logging": True,
    "async_support": True,
}

# Detector versions
DETECTOR_VERSIONS = {
    "risk_aggregator": "1.0.0",
    "pattern_analyzer": "1.0.0",
    "instruction_override": "1.0.0",
    "role_confusion": "1.0.0",
    "context_pollution": "1.0.0",
    "encoding_detector": "1.0.0",
    "semantic_analyzer": "1.0.0",
}
