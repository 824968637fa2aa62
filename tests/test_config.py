# tests/test_config.py
import logging
from decimal import Decimal

from quotation_engine.config import EngineConfig, configure_logging


def test_defaults():
    config = EngineConfig.from_env({})
    assert config.app_id == "default-app"
    assert config.quotes_table == "quotes"
    assert config.dynamodb_endpoint is None
    assert config.region == "us-east-1"
    assert config.default_tax_rate == Decimal("20")
    assert config.allow_negative_amounts is True


def test_from_environment():
    config = EngineConfig.from_env({
        "APP_ID": "devis",
        "QUOTES_TABLE": "devis-quotes",
        "PRODUCTS_TABLE": "devis-products",
        "DYNAMODB_ENDPOINT": "http://localhost:8000",
        "AWS_DEFAULT_PROFILE": "dev",
        "AWS_DEFAULT_REGION": "eu-west-3",
        "DEFAULT_TAX_RATE": "5.5",
        "ALLOW_NEGATIVE_AMOUNTS": "false",
        "LOG_LEVEL": "debug",
    })
    assert config.app_id == "devis"
    assert config.products_table == "devis-products"
    assert config.dynamodb_endpoint == "http://localhost:8000"
    assert config.aws_profile == "dev"
    assert config.region == "eu-west-3"
    assert config.default_tax_rate == Decimal("5.5")
    assert config.allow_negative_amounts is False
    assert config.log_level == "DEBUG"


def test_invalid_tax_rate_falls_back():
    assert EngineConfig.from_env({"DEFAULT_TAX_RATE": "twenty"}).default_tax_rate == Decimal("20")


def test_configure_logging():
    logger = configure_logging(EngineConfig(log_level="WARNING"))
    assert logger.name == "quotation_engine"
    assert logger.level == logging.WARNING
