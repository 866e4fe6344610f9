"""
Raster image routines built on Pillow.

The output format always follows the destination's extension, so a handler
chooses the format by choosing the file name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageEnhance, ImageFilter, ImageOps

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
    ".gif": "GIF",
    ".bmp": "BMP",
    ".tiff": "TIFF",
    ".tif": "TIFF",
}

RESAMPLING = {
    "lanczos": Image.Resampling.LANCZOS,
    "cubic": Image.Resampling.BICUBIC,
    "nearest": Image.Resampling.NEAREST,
}

FIT_MODES = ("cover", "contain", "fill", "inside", "outside")


def _open(path: Path) -> Image.Image:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    image = Image.open(path)
    image.load()
    image = ImageOps.exif_transpose(image) or image
    if image.mode not in ("RGB", "RGBA", "L", "LA"):
        has_alpha = "transparency" in image.info or "A" in image.getbands()
        image = image.convert("RGBA" if has_alpha else "RGB")
    return image


def extension_for(format_name: str) -> str:
    """Map a user-facing format name onto a file extension (``jpeg`` -> ``jpg``)."""
    name = format_name.lower().lstrip(".")
    return "jpg" if name == "jpeg" else name


def save_image(image: Image.Image, destination: Path, quality: int = 80) -> Path:
    """
    Encode ``image`` in the format implied by ``destination``'s extension.

    Alpha is flattened onto white for formats that cannot store it.

    Raises:
        ValueError: For an extension with no Pillow encoder mapping
    """
    format_name = PIL_FORMATS.get(destination.suffix.lower())
    if format_name is None:
        raise ValueError(f"Unsupported image format: {destination.suffix}")

    if format_name in ("JPEG", "BMP") and image.mode not in ("RGB", "L"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        rgba = image.convert("RGBA")
        background.paste(rgba, mask=rgba.getchannel("A"))
        image = background
    elif format_name == "GIF" and image.mode not in ("P", "L"):
        image = image.convert("RGBA").convert("P", palette=Image.Palette.ADAPTIVE)

    params = {}
    if format_name in ("JPEG", "WEBP"):
        params["quality"] = int(quality)
    if format_name == "JPEG":
        params["optimize"] = True
    if format_name == "PNG":
        params["optimize"] = True
        # Pillow's PNG encoder is lossless; map quality onto zlib effort instead
        params["compress_level"] = max(0, min(9, round(9 - int(quality) / 100 * 9)))
    if format_name == "TIFF":
        params["compression"] = "tiff_deflate"

    image.save(destination, format=format_name, **params)
    return destination


def _target_size(size: Tuple[int, int], width: Optional[int], height: Optional[int]) -> Tuple[int, int]:
    original_width, original_height = size
    if width and height:
        return int(width), int(height)
    if width:
        return int(width), max(1, round(original_height * width / original_width))
    if height:
        return max(1, round(original_width * height / original_height)), int(height)
    return original_width, original_height


def resize(image: Image.Image, width: Optional[int], height: Optional[int], fit: str = "inside") -> Image.Image:
    """
    Resize following CSS ``object-fit``-like semantics.

    - ``fill``: stretch to exactly width x height
    - ``inside``: largest size that fits within the box, aspect kept
    - ``outside``: smallest size that covers the box, aspect kept
    - ``cover``: cover the box then center-crop to it
    - ``contain``: fit inside then pad to the box with transparency
    """
    if not width and not height:
        return image
    if fit not in FIT_MODES:
        raise ValueError(f"Unknown resize mode: {fit}")

    box = _target_size(image.size, width, height)
    if fit == "fill":
        return image.resize(box, Image.Resampling.LANCZOS)
    if fit == "inside":
        return ImageOps.contain(image, box, Image.Resampling.LANCZOS)
    if fit == "cover":
        return ImageOps.fit(image, box, Image.Resampling.LANCZOS)
    if fit == "contain":
        padded = image.convert("RGBA")
        return ImageOps.pad(padded, box, Image.Resampling.LANCZOS, color=(0, 0, 0, 0))
    scale = max(box[0] / image.width, box[1] / image.height)
    return image.resize((max(1, round(image.width * scale)), max(1, round(image.height * scale))), Image.Resampling.LANCZOS)


def convert_image(
    source: Path,
    destination: Path,
    quality: int = 80,
    width: Optional[int] = None,
    height: Optional[int] = None,
    maintain_aspect_ratio: bool = True,
) -> Path:
    image = _open(source)
    image = resize(image, width, height, "inside" if maintain_aspect_ratio else "fill")
    return save_image(image, destination, quality)


def resize_image(source: Path, destination: Path, width: Optional[int], height: Optional[int], fit: str = "inside") -> Path:
    return save_image(resize(_open(source), width, height, fit), destination, quality=90)


def compress_image(source: Path, destination: Path, quality: int = 80) -> Path:
    return save_image(_open(source), destination, quality)


def crop_image(source: Path, destination: Path, x: int, y: int, width: int, height: int) -> Path:
    image = _open(source)
    if x < 0 or y < 0 or x + width > image.width or y + height > image.height:
        raise ValueError(f"Crop area {width}x{height}+{x}+{y} lies outside the {image.width}x{image.height} image")
    return save_image(image.crop((x, y, x + width, y + height)), destination, quality=90)


def rotate_image(source: Path, destination: Path, angle: float = 90, flip_horizontal: bool = False, flip_vertical: bool = False) -> Path:
    image = _open(source)
    if angle % 360:
        # Pillow turns counter-clockwise; the angle here is clockwise
        fill = (0, 0, 0, 0) if image.mode in ("RGBA", "LA") else None
        image = image.rotate(-angle, expand=True, resample=Image.Resampling.BICUBIC, fillcolor=fill)
    if flip_vertical:
        image = ImageOps.flip(image)
    if flip_horizontal:
        image = ImageOps.mirror(image)
    return save_image(image, destination, quality=90)


def _shift_hue(image: Image.Image, degrees: float) -> Image.Image:
    alpha = image.getchannel("A") if image.mode == "RGBA" else None
    hue, saturation, value = image.convert("RGB").convert("HSV").split()
    offset = round(degrees / 360 * 255)
    hue = hue.point(lambda channel: (channel + offset) % 256)
    shifted = Image.merge("HSV", (hue, saturation, value)).convert("RGB")
    if alpha is not None:
        shifted.putalpha(alpha)
    return shifted


def edit_photo(source: Path, destination: Path, brightness: float = 0, contrast: float = 0, saturation: float = 0, hue: float = 0) -> Path:
    """Apply slider adjustments, each in -100..100 (hue in degrees)."""
    image = _open(source)
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
    if brightness:
        image = ImageEnhance.Brightness(image).enhance(1 + brightness / 100)
    if saturation:
        image = ImageEnhance.Color(image).enhance(1 + saturation / 100)
    if hue:
        image = _shift_hue(image, hue)
    if contrast:
        image = ImageEnhance.Contrast(image).enhance(1 + contrast / 100)
    return save_image(image, destination, quality=92)


def enhance_image(source: Path, destination: Path, scale: int = 2, sharpen: float = 50) -> Path:
    image = _open(source)
    image = image.resize((image.width * scale, image.height * scale), Image.Resampling.LANCZOS)
    if sharpen > 0:
        image = image.filter(ImageFilter.UnsharpMask(radius=2, percent=int(sharpen * 2), threshold=3))
    return save_image(image, destination, quality=92)


def remove_background(source: Path, destination: Path, threshold: int = 200) -> Path:
    """
    Make light pixels transparent.

    A pixel whose mean RGB brightness exceeds ``threshold`` gets alpha 0.
    This suits product shots on white or near-white backgrounds.
    """
    image = _open(source).convert("RGBA")
    pixels = [
        (red, green, blue, 0 if (red + green + blue) / 3 > threshold else alpha)
        for red, green, blue, alpha in image.getdata()
    ]
    image.putdata(pixels)
    return save_image(image, destination)


def remove_watermark(source: Path, destination: Path, x: int, y: int, width: int, height: int, strength: float = 5) -> Path:
    """Blur the rectangle that holds a watermark. ``strength`` 5 gives a radius-10 blur."""
    image = _open(source)
    left, top = max(0, x), max(0, y)
    right, bottom = min(image.width, x + width), min(image.height, y + height)
    if right <= left or bottom <= top:
        raise ValueError("Watermark region lies outside the image")
    region = image.crop((left, top, right, bottom)).filter(ImageFilter.GaussianBlur(radius=strength * 2))
    image.paste(region, (left, top))
    return save_image(image, destination, quality=92)


def enhance_photo(source: Path, destination: Path, denoise: bool = True, sharpen: bool = True, color_enhance: bool = True) -> Path:
    image = _open(source)
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGB")
    if denoise:
        image = image.filter(ImageFilter.GaussianBlur(radius=0.5))
    if sharpen:
        image = image.filter(ImageFilter.UnsharpMask(radius=2, percent=100, threshold=2))
    if color_enhance:
        image = ImageEnhance.Brightness(image).enhance(1.1)
        image = ImageEnhance.Color(image).enhance(1.2)
    return save_image(image, destination, quality=92)


def upscale_image(source: Path, destination: Path, scale: float = 2, algorithm: str = "lanczos") -> Path:
    image = _open(source)
    resample = RESAMPLING.get(algorithm, Image.Resampling.LANCZOS)
    size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
    image = image.resize(size, resample).filter(ImageFilter.UnsharpMask(radius=1, percent=50, threshold=2))
    return save_image(image, destination, quality=92)
