"""
Developer utilities: hashing, encodings, JSON, QR codes, colors, timestamps,
UUIDs and passwords.
"""

from __future__ import annotations

import base64
import binascii
import colorsys
import hashlib
import json
import math
import re
import secrets
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Tuple
from urllib.parse import quote, unquote

import segno

HASH_ALGORITHMS = ("md5", "sha1", "sha256", "sha512")
COLOR_FORMATS = ("hex", "rgb", "hsl", "hsv")
STRENGTH_LABELS = ("Very Weak", "Weak", "Fair", "Good", "Strong")

UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
SIMILAR = set("0O1lI")

RGB_PATTERN = re.compile(r"rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*[\d.]+\s*)?\)", re.IGNORECASE)
HSL_PATTERN = re.compile(r"hs([lv])\(\s*([\d.]+)\s*,\s*([\d.]+)%?\s*,\s*([\d.]+)%?\s*\)", re.IGNORECASE)


def generate_hash(text: str, algorithm: str = "sha256") -> str:
    if algorithm not in HASH_ALGORITHMS:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    return hashlib.new(algorithm, text.encode("utf-8")).hexdigest()


def encode_base64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_base64(text: str) -> str:
    """
    Raises:
        ValueError: If ``text`` is not valid Base64
    """
    try:
        return base64.b64decode(text.strip(), validate=False).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid Base64 string") from exc


def encode_url(text: str) -> str:
    # Same reserved set as JavaScript's encodeURIComponent
    return quote(text, safe="-_.!~*'()")


def decode_url(text: str) -> str:
    return unquote(text, errors="strict")


def format_json(text: str, indent: int = 2) -> Dict[str, Any]:
    """
    Pretty-print ``text`` if it parses.

    Returns:
        ``{"formatted", "valid"}`` plus ``"error"`` when the input is invalid,
        in which case ``formatted`` is the input unchanged
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return {"formatted": text, "valid": False, "error": str(exc)}
    return {"formatted": json.dumps(parsed, indent=indent, ensure_ascii=False), "valid": True}


def generate_qr(text: str, destination: Path, size: int = 256, error_correction: str = "M") -> Path:
    """
    Write a QR code to ``destination`` as PNG or SVG (from the extension).

    The module scale is the largest integer that keeps the symbol within
    ``size`` pixels, with a one-module quiet zone.
    """
    code = segno.make(text, error=error_correction.lower(), micro=False)
    modules = code.symbol_size(scale=1, border=1)[0]
    scale = max(1, size // modules)
    kind = destination.suffix.lower().lstrip(".")
    code.save(str(destination), kind=kind, scale=scale, border=1, dark="#000000", light="#FFFFFF")
    return destination


def parse_color(value: str) -> Tuple[int, int, int]:
    """
    Parse ``#rgb``, ``#rrggbb``, ``rgb(r, g, b)``, ``hsl(...)`` or ``hsv(...)``.

    Raises:
        ValueError: For anything else
    """
    text = value.strip()
    if text.startswith("#") or re.fullmatch(r"[0-9a-fA-F]{3}|[0-9a-fA-F]{6}", text):
        digits = text.lstrip("#")
        if len(digits) == 3:
            digits = "".join(char * 2 for char in digits)
        if len(digits) != 6 or not re.fullmatch(r"[0-9a-fA-F]{6}", digits):
            raise ValueError("Invalid hex color format")
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)

    match = RGB_PATTERN.fullmatch(text)
    if match:
        red, green, blue = (int(group) for group in match.groups())
        if max(red, green, blue) > 255:
            raise ValueError("RGB components must be between 0 and 255")
        return red, green, blue

    match = HSL_PATTERN.fullmatch(text)
    if match:
        model, hue, second, third = match.group(1).lower(), *(float(group) for group in match.groups()[1:])
        if model == "l":
            channels = colorsys.hls_to_rgb(hue / 360, third / 100, second / 100)
        else:
            channels = colorsys.hsv_to_rgb(hue / 360, second / 100, third / 100)
        return tuple(round(channel * 255) for channel in channels)  # type: ignore[return-value]

    raise ValueError("Unsupported color format")


def convert_color(value: str, target_format: str) -> str:
    """
    Example:
        >>> convert_color("#ff0000", "hsl")
        "hsl(0, 100%, 50%)"
    """
    red, green, blue = parse_color(value)
    if target_format == "hex":
        return f"#{red:02x}{green:02x}{blue:02x}"
    if target_format == "rgb":
        return f"rgb({red}, {green}, {blue})"
    if target_format == "hsl":
        hue, lightness, saturation = colorsys.rgb_to_hls(red / 255, green / 255, blue / 255)
        return f"hsl({round(hue * 360)}, {round(saturation * 100)}%, {round(lightness * 100)}%)"
    if target_format == "hsv":
        hue, saturation, brightness = colorsys.rgb_to_hsv(red / 255, green / 255, blue / 255)
        return f"hsv({round(hue * 360)}, {round(saturation * 100)}%, {round(brightness * 100)}%)"
    raise ValueError(f"Unsupported target format: {target_format}")


def _parse_instant(value: str, input_format: str) -> datetime:
    text = value.strip()
    if input_format == "unix":
        try:
            return datetime.fromtimestamp(float(text), tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as exc:
            raise ValueError("Invalid date/timestamp") from exc
    try:
        parsed = datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith("Z") else text)
    except ValueError:
        parsed = None
        for pattern in ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%d %B %Y", "%B %d, %Y", "%a %b %d %Y"):
            try:
                parsed = datetime.strptime(text, pattern)
                break
            except ValueError:
                continue
        if parsed is None:
            raise ValueError("Invalid date/timestamp")
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def convert_timestamp(value: str, input_format: str = "unix", output_format: str = "readable") -> str:
    """
    Convert between unix seconds, ISO 8601 and human-readable dates.

    Naive inputs are read as UTC and every output is rendered in UTC.

    Example:
        >>> convert_timestamp("0", "unix", "iso")
        "1970-01-01T00:00:00.000Z"
    """
    instant = _parse_instant(value, input_format).astimezone(timezone.utc)
    if output_format == "unix":
        return str(math.floor(instant.timestamp()))
    if output_format == "iso":
        return instant.strftime("%Y-%m-%dT%H:%M:%S.") + f"{instant.microsecond // 1000:03d}Z"
    if output_format == "date":
        return instant.strftime("%a %b %d %Y")
    if output_format == "readable":
        return instant.strftime("%m/%d/%Y, %I:%M:%S %p") + " UTC"
    raise ValueError(f"Unsupported output format: {output_format}")


def generate_uuids(count: int = 1, version: str = "v4") -> List[str]:
    if version != "v4":
        raise ValueError(f"Unsupported UUID version: {version}")
    return [str(uuid.uuid4()) for _ in range(count)]


def generate_password(
    length: int = 12,
    include_uppercase: bool = True,
    include_lowercase: bool = True,
    include_numbers: bool = True,
    include_symbols: bool = False,
    exclude_similar: bool = False,
) -> str:
    """
    Draw ``length`` characters uniformly from the selected classes using ``secrets``.

    Raises:
        ValueError: If no character class is selected
    """
    charset = ""
    for enabled, characters in (
        (include_uppercase, UPPERCASE),
        (include_lowercase, LOWERCASE),
        (include_numbers, DIGITS),
        (include_symbols, SYMBOLS),
    ):
        if enabled:
            charset += "".join(char for char in characters if not (exclude_similar and char in SIMILAR))
    if not charset:
        raise ValueError("At least one character type must be selected")
    return "".join(secrets.choice(charset) for _ in range(length))


def analyze_password_strength(password: str) -> Dict[str, Any]:
    """Score 0-7 from length, character variety and absence of repeated pairs."""
    score = 0
    feedback: List[str] = []

    if len(password) >= 8:
        score += 1
    else:
        feedback.append("Use at least 8 characters")
    if len(password) >= 12:
        score += 1
    elif len(password) >= 8:
        feedback.append("Consider using 12+ characters for better security")

    for pattern, advice in (
        (r"[a-z]", "Include lowercase letters"),
        (r"[A-Z]", "Include uppercase letters"),
        (r"[0-9]", "Include numbers"),
        (r"[^a-zA-Z0-9]", "Include special characters"),
    ):
        if re.search(pattern, password):
            score += 1
        else:
            feedback.append(advice)

    if re.search(r"(..).*\1", password):
        feedback.append("Avoid repeating patterns")
    else:
        score += 1

    return {"score": score, "strength": STRENGTH_LABELS[min(math.floor(score / 1.4), 4)], "feedback": feedback}
