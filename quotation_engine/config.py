"""
Engine configuration.

Settings are read from the environment once at startup by EngineConfig.from_env()
and passed explicitly to repositories and the orchestrator.
"""

import os
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

PACKAGE_LOGGER = "quotation_engine"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineConfig:
    """Explicit configuration struct for the quotation engine."""

    app_id: str = "default-app"
    quotes_table: str = "quotes"
    products_table: str = "products"
    dynamodb_endpoint: Optional[str] = None
    aws_profile: Optional[str] = None
    region: str = "us-east-1"
    default_tax_rate: Decimal = Decimal("20")
    allow_negative_amounts: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            EngineConfig
        """
        env = os.environ if environ is None else environ

        try:
            default_tax_rate = Decimal(str(env.get("DEFAULT_TAX_RATE", "20")).strip())
        except ArithmeticError:
            default_tax_rate = Decimal("20")
        if not default_tax_rate.is_finite():
            default_tax_rate = Decimal("20")

        return cls(
            app_id=env.get("APP_ID", "default-app"),
            quotes_table=env.get("QUOTES_TABLE", "quotes"),
            products_table=env.get("PRODUCTS_TABLE", "products"),
            dynamodb_endpoint=env.get("DYNAMODB_ENDPOINT") or None,
            aws_profile=env.get("AWS_PROFILE") or env.get("AWS_DEFAULT_PROFILE") or None,
            region=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION", "us-east-1"),
            default_tax_rate=default_tax_rate,
            allow_negative_amounts=env.get("ALLOW_NEGATIVE_AMOUNTS", "true").strip().lower() in _TRUE_VALUES,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(config: EngineConfig) -> logging.Logger:
    """Apply the configured log level to the package logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    return logger
