"""Developer utilities: hashes, encoders, JSON, QR codes, colors, timestamps, UUIDs and passwords."""

from __future__ import annotations

from ..errors import invalid_option
from ..processors import developer
from .base import HandlerSet, ToolContext, ToolOutcome, optional_one, rejecting

HANDLERS = HandlerSet()


def _required_text(context: ToolContext, message: str, option: str = "text") -> str:
    content = context.text(option)
    if not content.strip():
        raise invalid_option(context.tool_id, message)
    return content


HASH_REQUIRED = "Text is required for hash generation"


@HANDLERS.tool(
    "hash-generator",
    files=optional_one(),
    text_option="text",
    failure="Failed to generate hash",
    required={"text": HASH_REQUIRED},
)
def hash_text(context: ToolContext) -> ToolOutcome:
    algorithm = context.options.get("algorithm") or "sha256"
    with rejecting(context.tool_id):
        digest = developer.generate_hash(_required_text(context, HASH_REQUIRED), algorithm)
    result = {"algorithm": algorithm, "hash": digest}
    return ToolOutcome(context.write_json(f"{algorithm}_hash", result), f"Successfully generated {algorithm.upper()} hash", data=result)


BASE64_REQUIRED = "Text is required for Base64 operation"


@HANDLERS.tool(
    "base64-encoder",
    files=optional_one(),
    text_option="text",
    failure="Failed to process Base64",
    required={"text": BASE64_REQUIRED},
)
def base64_codec(context: ToolContext) -> ToolOutcome:
    operation = context.options.get("operation") or "encode"
    content = _required_text(context, BASE64_REQUIRED)
    with rejecting(context.tool_id):
        result = developer.encode_base64(content) if operation == "encode" else developer.decode_base64(content)
    return ToolOutcome(
        context.write_text(f"base64_{operation}d", result),
        f"Successfully {operation}d text with Base64",
        data={"operation": operation, "result": result},
    )


URL_REQUIRED = "Text is required for URL operation"


@HANDLERS.tool(
    "url-encoder",
    files=optional_one(),
    text_option="text",
    failure="Failed to process URL",
    required={"text": URL_REQUIRED},
)
def url_codec(context: ToolContext) -> ToolOutcome:
    operation = context.options.get("operation") or "encode"
    content = _required_text(context, URL_REQUIRED)
    with rejecting(context.tool_id, ValueError, UnicodeDecodeError):
        result = developer.encode_url(content) if operation == "encode" else developer.decode_url(content)
    return ToolOutcome(
        context.write_text(f"url_{operation}d", result),
        f"Successfully {operation}d URL/text",
        data={"operation": operation, "result": result},
    )


JSON_REQUIRED = "JSON data is required"


@HANDLERS.tool(
    "json-formatter",
    files=optional_one(),
    text_option="json",
    failure="Failed to format JSON",
    required={"json": JSON_REQUIRED},
)
def format_json(context: ToolContext) -> ToolOutcome:
    indent = int(context.options.get("indent") or 2)
    result = developer.format_json(_required_text(context, JSON_REQUIRED, option="json"), indent)
    if context.options.get("validateOnly", False):
        report = {"valid": result["valid"], "error": result.get("error")}
        message = "JSON is valid" if result["valid"] else "JSON is invalid"
        return ToolOutcome(context.write_json("json_validation", report), message, data=report)

    message = "Successfully formatted JSON" if result["valid"] else "JSON formatted with errors"
    extension = "json" if result["valid"] else "txt"
    return ToolOutcome(context.write_text("formatted", result["formatted"], extension), message, data=result)


@HANDLERS.tool(
    "qr-generator",
    failure="Failed to generate QR code",
    required={"text": "Text is required for QR code generation"},
)
def qr_code(context: ToolContext) -> ToolOutcome:
    options = context.options
    kind = options.get("format") or "png"
    destination = context.output("qrcode", kind)
    with rejecting(context.tool_id):
        developer.generate_qr(
            options["text"],
            destination,
            size=int(options.get("size") or 256),
            error_correction=options.get("errorCorrection") or "M",
        )
    return ToolOutcome(destination, f"Successfully generated QR code ({kind.upper()})")


@HANDLERS.tool(
    "color-picker",
    failure="Failed to convert color",
    required={"color": "Color value is required"},
)
def pick_color(context: ToolContext) -> ToolOutcome:
    target = context.options.get("targetFormat") or "hex"
    with rejecting(context.tool_id):
        converted = developer.convert_color(context.options["color"], target)
    result = {"original": context.options["color"], "converted": converted, "format": target}
    return ToolOutcome(context.write_json("color", result), f"Successfully converted color to {target.upper()}", data=result)


@HANDLERS.tool(
    "timestamp-converter",
    failure="Failed to convert timestamp",
    required={"input": "Input value is required"},
)
def timestamp(context: ToolContext) -> ToolOutcome:
    options = context.options
    output_format = options.get("outputFormat") or "readable"
    with rejecting(context.tool_id):
        converted = developer.convert_timestamp(options["input"], options.get("inputFormat") or "unix", output_format)
    result = {"input": options["input"], "output": converted, "outputFormat": output_format}
    return ToolOutcome(
        context.write_json("timestamp", result),
        f"Successfully converted timestamp to {output_format}",
        data=result,
    )


@HANDLERS.tool("uuid-generator", failure="Failed to generate UUIDs")
def uuids(context: ToolContext) -> ToolOutcome:
    count = int(context.options.get("count") or 1)
    with rejecting(context.tool_id):
        generated = developer.generate_uuids(count, context.options.get("version") or "v4")
    suffix = "s" if count != 1 else ""
    return ToolOutcome(
        context.write_text("uuids", "\n".join(generated)),
        f"Successfully generated {count} UUID{suffix}",
        data={"uuids": generated},
    )


@HANDLERS.tool("password-generator", failure="Failed to generate password")
def password(context: ToolContext) -> ToolOutcome:
    options = context.options
    with rejecting(context.tool_id):
        generated = developer.generate_password(
            length=int(options.get("length") or 12),
            include_uppercase=options.get("includeUppercase", True),
            include_lowercase=options.get("includeLowercase", True),
            include_numbers=options.get("includeNumbers", True),
            include_symbols=options.get("includeSymbols", False),
            exclude_similar=options.get("excludeSimilar", False),
        )
    strength = developer.analyze_password_strength(generated)
    result = {"password": generated, "length": len(generated), "strength": strength}
    return ToolOutcome(
        context.write_json("password", result),
        f"Successfully generated {strength['strength'].lower()} password",
        data=result,
    )
