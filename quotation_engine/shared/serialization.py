"""
Conversions between engine values, JSON-safe values and DynamoDB attribute values.
"""

from decimal import Decimal
from typing import Any, Callable, Dict


def _walk(value: Any, leaf: Callable[[Any], Any]) -> Any:
    if isinstance(value, dict):
        return {key: _walk(item, leaf) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_walk(item, leaf) for item in value]
    return leaf(value)


def _decimal_to_native(value: Any) -> Any:
    if not isinstance(value, Decimal):
        return value
    # Whole amounts stay ints
    return int(value) if value == value.to_integral_value() else float(value)


def _float_to_decimal(value: Any) -> Any:
    return Decimal(str(value)) if isinstance(value, float) else value


def convert_decimals_to_native(obj: Any) -> Any:
    """JSON-safe copy of a nested structure holding Decimal amounts."""
    return _walk(obj, _decimal_to_native)


def convert_floats_to_decimal(obj: Any) -> Any:
    """Copy of a payload with floats turned into Decimal (boto3 rejects floats)."""
    return _walk(obj, _float_to_decimal)


_SCALAR_DECODERS: Dict[str, Callable[[Any], Any]] = {
    "S": str,
    "N": Decimal,
    "BOOL": bool,
    "NULL": lambda _: None,
}


def _decode_attr(attr: Any) -> Any:
    """Decode one typed stream attribute ({"S": ...}, {"N": ...}, {"M": ...}, ...)."""
    if not isinstance(attr, dict) or len(attr) != 1:
        return attr

    (type_tag, raw), = attr.items()
    if type_tag in _SCALAR_DECODERS:
        return _SCALAR_DECODERS[type_tag](raw)
    if type_tag == "M":
        return decode_dynamo_image(raw)
    if type_tag == "L":
        return [_decode_attr(item) for item in raw]
    return attr


def decode_dynamo_image(image: Dict[str, Any]) -> Dict[str, Any]:
    """Decode a DynamoDB stream image (Keys/NewImage/OldImage)."""
    return {name: _decode_attr(attr) for name, attr in (image or {}).items()}
