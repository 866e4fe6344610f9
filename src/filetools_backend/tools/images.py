"""Image tools built on the Pillow routines in ``processors.images``."""

from __future__ import annotations

from ..models import UploadedFile
from ..processors import images
from ..utils import compression_summary
from .base import HandlerSet, ToolContext, ToolOutcome, exactly, rejecting

HANDLERS = HandlerSet()


def _single_image(purpose: str):
    return exactly(1, f"Exactly 1 image file is required for {purpose}")


def _same_format(upload: UploadedFile) -> str:
    """Extension to write when a tool keeps the input's format."""
    extension = upload.extension.lstrip(".")
    return extension if f".{extension}" in images.PIL_FORMATS else "png"


@HANDLERS.tool("image-convert", files=_single_image("conversion"), failure="Failed to convert image")
def convert(context: ToolContext) -> ToolOutcome:
    options = context.options
    target = options.get("format") or "jpg"
    destination = context.output("converted", images.extension_for(target))
    images.convert_image(
        context.file.stored_path,
        destination,
        quality=options.get("quality", 80),
        width=options.get("width"),
        height=options.get("height"),
        maintain_aspect_ratio=options.get("maintainAspectRatio", True),
    )
    return ToolOutcome(destination, f"Successfully converted image to {target}")


@HANDLERS.tool("image-resize", files=_single_image("resizing"), failure="Failed to resize image")
def resize(context: ToolContext) -> ToolOutcome:
    options = context.options
    fit = options.get("fit") or "inside"
    if not options.get("maintainAspectRatio", True):
        fit = "fill"
    destination = context.output("resized", _same_format(context.file))
    with rejecting(context.tool_id):
        images.resize_image(context.file.stored_path, destination, options.get("width"), options.get("height"), fit)
    return ToolOutcome(destination, "Successfully resized image")


@HANDLERS.tool("image-compress", files=_single_image("compression"), failure="Failed to compress image")
def compress(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.output("compressed", images.extension_for(context.options.get("format") or "jpeg"))
    images.compress_image(source.stored_path, destination, quality=context.options.get("quality", 80))
    return ToolOutcome(destination, compression_summary("image", source.size_bytes, destination.stat().st_size))


@HANDLERS.tool(
    "image-crop",
    files=_single_image("cropping"),
    failure="Failed to crop image",
    required={"width": "Crop width and height are required", "height": "Crop width and height are required"},
)
def crop(context: ToolContext) -> ToolOutcome:
    options = context.options
    width, height = int(options["width"]), int(options["height"])
    destination = context.output("cropped", _same_format(context.file))
    with rejecting(context.tool_id):
        images.crop_image(
            context.file.stored_path,
            destination,
            int(options.get("x") or 0),
            int(options.get("y") or 0),
            width,
            height,
        )
    return ToolOutcome(destination, f"Successfully cropped image to {width}x{height} pixels")


@HANDLERS.tool("image-rotate", files=_single_image("rotation"), failure="Failed to rotate image")
def rotate(context: ToolContext) -> ToolOutcome:
    options = context.options
    angle = options.get("angle", 90)
    destination = context.output("rotated", _same_format(context.file))
    images.rotate_image(
        context.file.stored_path,
        destination,
        angle=angle,
        flip_horizontal=options.get("flipHorizontal", False),
        flip_vertical=options.get("flipVertical", False),
    )
    return ToolOutcome(destination, f"Successfully rotated image by {angle} degrees")


@HANDLERS.tool(
    "background-remover",
    files=_single_image("background removal"),
    failure="Failed to remove background from image",
)
def remove_background(context: ToolContext) -> ToolOutcome:
    # Transparency needs an alpha-capable format
    destination = context.output("no_background", "png")
    images.remove_background(context.file.stored_path, destination, threshold=int(context.options.get("threshold", 200)))
    return ToolOutcome(destination, "Successfully removed background from image")


@HANDLERS.tool("photo-editor", files=_single_image("photo editing"), failure="Failed to edit photo")
def edit(context: ToolContext) -> ToolOutcome:
    options = context.options
    destination = context.output("edited", _same_format(context.file))
    images.edit_photo(
        context.file.stored_path,
        destination,
        brightness=options.get("brightness") or 0,
        contrast=options.get("contrast") or 0,
        saturation=options.get("saturation") or 0,
        hue=options.get("hue") or 0,
    )
    return ToolOutcome(destination, "Photo editing completed successfully")


@HANDLERS.tool("image-enhancer", files=_single_image("enhancement"), failure="Failed to enhance image")
def enhance(context: ToolContext) -> ToolOutcome:
    scale = int((context.options.get("scale") or "2x").rstrip("x"))
    destination = context.output("enhanced", _same_format(context.file))
    images.enhance_image(context.file.stored_path, destination, scale=scale, sharpen=context.options.get("sharpen", 50))
    return ToolOutcome(destination, f"Image enhanced with {scale}x upscaling")


@HANDLERS.tool("watermark-remover", files=_single_image("watermark removal"), failure="Failed to remove watermark")
def remove_watermark(context: ToolContext) -> ToolOutcome:
    options = context.options
    destination = context.output("watermark_removed", _same_format(context.file))
    with rejecting(context.tool_id):
        images.remove_watermark(
            context.file.stored_path,
            destination,
            int(options.get("x") or 0),
            int(options.get("y") or 0),
            int(options.get("width") or 100),
            int(options.get("height") or 100),
            strength=options.get("sensitivity", 5),
        )
    return ToolOutcome(destination, "Successfully removed watermark from image")


@HANDLERS.tool("photo-enhancer", files=_single_image("photo enhancement"), failure="Failed to enhance photo")
def enhance_photo(context: ToolContext) -> ToolOutcome:
    options = context.options
    destination = context.output("photo_enhanced", _same_format(context.file))
    images.enhance_photo(
        context.file.stored_path,
        destination,
        denoise=options.get("denoise", True),
        sharpen=options.get("sharpen", True),
        color_enhance=options.get("colorEnhance", True),
    )
    return ToolOutcome(destination, "Successfully enhanced photo quality")


@HANDLERS.tool("image-upscaler", files=_single_image("upscaling"), failure="Failed to upscale image")
def upscale(context: ToolContext) -> ToolOutcome:
    scale = context.options.get("scale", 2)
    algorithm = context.options.get("algorithm") or "lanczos"
    destination = context.output("upscaled", _same_format(context.file))
    images.upscale_image(context.file.stored_path, destination, scale=scale, algorithm=algorithm)
    return ToolOutcome(destination, f"Successfully upscaled image by {scale}x using {algorithm} algorithm")
