"""
Coercion of raw form values into typed tool options.

Multipart forms deliver every option as a string. ``coerce_options`` turns
them into the Python values a processing routine expects, using nothing but
the tool's declared ``OptionSpec`` list, so no handler parses its own
options.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Collection, Dict, Mapping, Optional

from .errors import invalid_option
from .models import OptionSpec, OptionType, ToolDescriptor

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "1", "on", "yes"}
FALSE_STRINGS = {"false", "0", "off", "no"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value: Any) -> Optional[float | int]:
    """
    Parse a numeric option value, keeping integers as ``int``.

    Returns None for anything that is not a finite number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        text = str(value).strip()
        if text.lstrip("+-").isdigit():
            return int(text)
        number = float(text)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def parse_flag(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    return None


def _coerce_number(tool_id: str, spec: OptionSpec, value: Any) -> Optional[float | int]:
    number = None if _is_blank(value) else parse_number(value)
    if number is None:
        if not _is_blank(value):
            logger.warning(f"{tool_id}: ignoring unparseable value {value!r} for '{spec.name}'")
        default = spec.default
        return parse_number(default) if default is not None else None

    if spec.min is not None and number < spec.min:
        raise invalid_option(tool_id, f"{spec.label} must be at least {_format_bound(spec.min)}")
    if spec.max is not None and number > spec.max:
        raise invalid_option(tool_id, f"{spec.label} must be at most {_format_bound(spec.max)}")
    return number


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _coerce_flag(tool_id: str, spec: OptionSpec, value: Any) -> bool:
    if _is_blank(value):
        return bool(spec.default) if spec.default is not None else False
    flag = parse_flag(value)
    if flag is None:
        raise invalid_option(tool_id, f"{spec.label} must be true or false")
    return flag


def _coerce_choice(tool_id: str, spec: OptionSpec, value: Any) -> Optional[str]:
    if _is_blank(value):
        return str(spec.default) if spec.default is not None else None
    choice = str(value).strip()
    if choice not in (spec.options or []):
        raise invalid_option(tool_id, f"Invalid {spec.label}: {choice}")
    return choice


def _coerce_text(spec: OptionSpec, value: Any) -> Optional[str]:
    if _is_blank(value):
        return str(spec.default) if spec.default is not None else None
    return str(value)


def _coerce_datetime(tool_id: str, spec: OptionSpec, value: Any) -> Optional[datetime]:
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise invalid_option(tool_id, f"Invalid {spec.label}: {value}") from exc


def coerce_value(tool_id: str, spec: OptionSpec, value: Any) -> Any:
    if spec.is_numeric:
        return _coerce_number(tool_id, spec, value)
    if spec.type is OptionType.CHECKBOX:
        return _coerce_flag(tool_id, spec, value)
    if spec.type is OptionType.SELECT:
        return _coerce_choice(tool_id, spec, value)
    if spec.type is OptionType.DATETIME:
        return _coerce_datetime(tool_id, spec, value)
    return _coerce_text(spec, value)


def coerce_options(
    descriptor: ToolDescriptor,
    raw: Mapping[str, Any],
    satisfied: Collection[str] = (),
    messages: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Coerce raw form fields against a tool's declared options.

    Every declared option appears in the result (``None`` when absent and
    without default); undeclared keys are dropped.

    Args:
        descriptor: Tool whose option schema applies
        raw: Form fields as received, usually all strings
        satisfied: Required option names that another input already
            provides, e.g. a text tool that received a file instead of
            pasted text
        messages: Tool-specific text for a missing required option, keyed
            by option name

    Returns:
        Mapping of option name to typed value

    Raises:
        ToolError: ``invalid_option`` for a missing required value, an
            out-of-range number, an unknown choice or a malformed date

    Example:
        >>> coerce_options(image_compress, {"quality": "60", "junk": "x"})
        {"quality": 60, "format": "jpeg"}
    """
    messages = messages or {}
    coerced: Dict[str, Any] = {}

    for spec in descriptor.options:
        value = coerce_value(descriptor.id, spec, raw.get(spec.name))
        if spec.required and value is None and spec.name not in satisfied:
            message = messages.get(spec.name) or f"{spec.label} is required"
            raise invalid_option(descriptor.id, message)
        coerced[spec.name] = value

    dropped = set(raw) - set(coerced)
    if dropped:
        logger.debug(f"{descriptor.id}: dropping undeclared options {sorted(dropped)}")
    return coerced
