"""Converter tools: units, currency, bases, colors, timezones, encodings and media/document formats."""

from __future__ import annotations

from ..processors import EmptyDocumentError, converters, developer, images, media, office
from .base import HandlerSet, ToolContext, ToolOutcome, exactly, optional_one, rejecting

ENCODING_REQUIRED = "Text is required for encoding conversion"


def build_converter_handlers(ffmpeg: str = "ffmpeg") -> HandlerSet:
    """Converter handlers; ``ffmpeg`` backs the audio format converter."""
    handlers = HandlerSet()

    @handlers.tool(
        "unit-converter",
        failure="Failed to convert units",
        required=dict.fromkeys(("value", "fromUnit", "toUnit"), "Value, from unit, and to unit are required"),
    )
    def unit(context: ToolContext) -> ToolOutcome:
        options = context.options
        value, from_unit, to_unit = options["value"], options["fromUnit"].strip(), options["toUnit"].strip()
        unit_type = options.get("unitType") or "length"
        with rejecting(context.tool_id):
            converted = converters.convert_unit(value, from_unit, to_unit, unit_type)
        result = {
            "originalValue": value,
            "convertedValue": converted,
            "fromUnit": from_unit,
            "toUnit": to_unit,
            "unitType": unit_type,
        }
        return ToolOutcome(
            context.write_json("unit_conversion", result),
            f"Successfully converted {value} {from_unit} to {converted:.6f} {to_unit}",
            data=result,
        )

    @handlers.tool(
        "currency-converter",
        failure="Failed to convert currency",
        required=dict.fromkeys(
            ("amount", "fromCurrency", "toCurrency"), "Amount, from currency, and to currency are required"
        ),
    )
    def currency(context: ToolContext) -> ToolOutcome:
        options = context.options
        with rejecting(context.tool_id):
            result = converters.convert_currency(options["amount"], options["fromCurrency"], options["toCurrency"])
        return ToolOutcome(
            context.write_json("currency_conversion", result),
            (
                f"Successfully converted {result['originalAmount']} {result['fromCurrency']} "
                f"to {result['convertedAmount']} {result['toCurrency']}"
            ),
            data=result,
        )

    @handlers.tool(
        "number-base-converter",
        failure="Failed to convert number base",
        required=dict.fromkeys(("number", "fromBase", "toBase"), "Number, from base, and to base are required"),
    )
    def number_base(context: ToolContext) -> ToolOutcome:
        options = context.options
        number = options["number"].strip()
        from_base, to_base = int(options["fromBase"]), int(options["toBase"])
        with rejecting(context.tool_id):
            converted = converters.convert_number_base(number, from_base, to_base)
        result = {"original": number, "converted": converted, "fromBase": from_base, "toBase": to_base}
        return ToolOutcome(
            context.write_json("base_conversion", result),
            f"Successfully converted {number} (base {from_base}) to {converted} (base {to_base})",
            data=result,
        )

    @handlers.tool("color-converter", failure="Failed to convert color", required={"color": "Color value is required"})
    def color(context: ToolContext) -> ToolOutcome:
        target = context.options.get("targetFormat") or "hex"
        with rejecting(context.tool_id):
            converted = developer.convert_color(context.options["color"], target)
        result = {"original": context.options["color"], "converted": converted, "format": target}
        return ToolOutcome(
            context.write_json("color_conversion", result),
            f"Successfully converted color to {target.upper()}",
            data=result,
        )

    @handlers.tool(
        "timezone-converter",
        failure="Failed to convert timezone",
        required=dict.fromkeys(
            ("dateTime", "fromTimezone", "toTimezone"), "Date/time, from timezone, and to timezone are required"
        ),
    )
    def timezone(context: ToolContext) -> ToolOutcome:
        options = context.options
        with rejecting(context.tool_id):
            result = converters.convert_timezone(options["dateTime"], options["fromTimezone"], options["toTimezone"])
        return ToolOutcome(
            context.write_json("timezone_conversion", result),
            f"Successfully converted time from {result['fromTimezone']} to {result['toTimezone']}",
            data=result,
        )

    @handlers.tool(
        "image-format-converter",
        files=exactly(1, "Exactly 1 image file is required for format conversion"),
        failure="Failed to convert image format",
    )
    def image_format(context: ToolContext) -> ToolOutcome:
        target = context.options.get("format") or "png"
        destination = context.output("converted", images.extension_for(target))
        images.convert_image(context.file.stored_path, destination, quality=context.options.get("quality", 80))
        return ToolOutcome(destination, f"Successfully converted image to {target.upper()}")

    @handlers.tool(
        "audio-format-converter",
        files=exactly(1, "Exactly 1 audio file is required for format conversion"),
        failure="Failed to convert audio format. Please ensure FFmpeg is installed.",
    )
    def audio_format(context: ToolContext) -> ToolOutcome:
        target = context.options.get("format") or "mp3"
        destination = context.output("converted_audio", target)
        media.convert_audio(
            ffmpeg,
            context.file.stored_path,
            destination,
            bitrate_kbps=int(context.options.get("bitrate") or 192),
        )
        return ToolOutcome(destination, f"Successfully converted audio to {target.upper()}")

    @handlers.tool(
        "document-format-converter",
        files=exactly(1, "Exactly 1 document file is required for format conversion"),
        failure="Failed to convert document format",
    )
    def document_format(context: ToolContext) -> ToolOutcome:
        source = context.file
        target = context.options.get("format") or "pdf"
        destination = context.named_output(f"{source.stem}.{target}")
        with rejecting(context.tool_id, EmptyDocumentError):
            office.convert_document(source.stored_path, destination, title=source.stem)
        return ToolOutcome(destination, f"Successfully converted document to {target.upper()}")

    @handlers.tool(
        "encoding-converter",
        files=optional_one(),
        text_option="text",
        failure="Failed to convert encoding",
        required={"text": ENCODING_REQUIRED},
    )
    def encoding(context: ToolContext) -> ToolOutcome:
        content = context.text()
        from_encoding = context.options.get("fromEncoding") or "utf8"
        to_encoding = context.options.get("toEncoding") or "base64"
        with rejecting(context.tool_id):
            if not content:
                raise ValueError(ENCODING_REQUIRED)
            converted = converters.convert_encoding(content, from_encoding, to_encoding)
        return ToolOutcome(
            context.write_text("encoded", converted),
            f"Successfully converted text from {from_encoding} to {to_encoding}",
            data={"result": converted, "fromEncoding": from_encoding, "toEncoding": to_encoding},
        )

    return handlers
