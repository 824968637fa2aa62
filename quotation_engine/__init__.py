"""
Quotation engine: quote pricing, lifecycle and catalog orchestration.
"""

from quotation_engine.config import EngineConfig, configure_logging
from quotation_engine.api.orchestrator import QuoteApp, View, EditState

__version__ = "0.1.0"

__all__ = ["EngineConfig", "configure_logging", "QuoteApp", "View", "EditState"]
