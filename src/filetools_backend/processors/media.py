"""
Video and audio routines that shell out to ffmpeg.

Each function builds one ffmpeg command line; ``run_command`` raises
``CommandError`` when ffmpeg is missing or fails, which the dispatch layer
reports with the tool's own failure message.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from .commands import run_command

logger = logging.getLogger(__name__)

VIDEO_CRF = {"high": 18, "medium": 23, "low": 28}
COMPRESSION_QUALITY = {"light": 80, "medium": 60, "heavy": 40}
AUDIO_CODECS = {
    "mp3": "libmp3lame",
    "wav": "pcm_s16le",
    "aac": "aac",
    "flac": "flac",
    "ogg": "libvorbis",
}
# Containers that cannot carry H.264/AAC
WEBM_CODECS = ["-c:v", "libvpx-vp9", "-b:v", "0", "-c:a", "libopus"]


def _require(path: Path) -> str:
    if not Path(path).exists():
        raise FileNotFoundError(f"File not found: {path}")
    return str(path)


def _video_codecs(destination: Path, crf: Optional[int] = None) -> List[str]:
    if destination.suffix.lower() == ".webm":
        codecs = list(WEBM_CODECS)
    else:
        codecs = ["-c:v", "libx264", "-c:a", "aac"]
    if crf is not None:
        codecs += ["-crf", str(crf)]
    return codecs


def crf_for_quality(quality: int) -> int:
    """
    Map a 1-100 quality onto x264's 0-51 CRF scale (lower CRF is better).

    Example:
        >>> crf_for_quality(60)
        20
    """
    return round(51 - (quality / 100) * 51)


def convert_video(ffmpeg: str, source: Path, destination: Path, quality: str = "medium") -> Path:
    command = [ffmpeg, "-y", "-i", _require(source)]
    crf = VIDEO_CRF.get(quality)
    if quality == "original":
        crf = 17
    command += _video_codecs(destination, crf)
    run_command([*command, str(destination)])
    return destination


def compress_video(ffmpeg: str, source: Path, destination: Path, level: str = "medium", target_size_mb: Optional[float] = None) -> Path:
    quality = COMPRESSION_QUALITY.get(level, COMPRESSION_QUALITY["medium"])
    command = [ffmpeg, "-y", "-i", _require(source), *_video_codecs(destination, crf_for_quality(quality))]
    if target_size_mb:
        command += ["-fs", str(int(target_size_mb * 1024 * 1024))]
    run_command([*command, str(destination)])
    return destination


def trim_video(ffmpeg: str, source: Path, destination: Path, start: float, duration: Optional[float] = None) -> Path:
    command = [ffmpeg, "-y", "-ss", str(start), "-i", _require(source)]
    if duration is not None:
        command += ["-t", str(duration)]
    command += ["-c", "copy", str(destination)]
    run_command(command)
    return destination


def edit_video(
    ffmpeg: str,
    source: Path,
    destination: Path,
    start: float = 0,
    end: Optional[float] = None,
    brightness: float = 0,
    contrast: float = 0,
) -> Path:
    """
    Trim and adjust brightness/contrast in one pass.

    Without adjustments the streams are copied; with them the video is
    re-encoded through ffmpeg's ``eq`` filter (brightness -100..100 maps to
    -1..1, contrast -100..100 maps to 0..2).
    """
    if not brightness and not contrast:
        duration = end - start if end is not None else None
        return trim_video(ffmpeg, source, destination, start, duration)

    command = [ffmpeg, "-y", "-ss", str(start), "-i", _require(source)]
    if end is not None:
        command += ["-t", str(end - start)]
    command += ["-vf", f"eq=brightness={brightness / 100:.2f}:contrast={1 + contrast / 100:.2f}"]
    command += _video_codecs(destination)
    run_command([*command, str(destination)])
    return destination


def rotation_filters(angle: int, flip_horizontal: bool = False, flip_vertical: bool = False) -> str:
    filters: List[str] = []
    if angle == 90:
        filters.append("transpose=1")
    elif angle == 180:
        filters += ["transpose=1", "transpose=1"]
    elif angle == 270:
        filters.append("transpose=2")
    if flip_horizontal:
        filters.append("hflip")
    if flip_vertical:
        filters.append("vflip")
    return ",".join(filters)


def rotate_video(ffmpeg: str, source: Path, destination: Path, angle: int = 90, flip_horizontal: bool = False, flip_vertical: bool = False) -> Path:
    command = [ffmpeg, "-y", "-i", _require(source)]
    filters = rotation_filters(angle, flip_horizontal, flip_vertical)
    if filters:
        command += ["-vf", filters]
    command += ["-c:a", "copy", str(destination)]
    run_command(command)
    return destination


def extract_audio(ffmpeg: str, source: Path, destination: Path, bitrate_kbps: Optional[int] = None) -> Path:
    codec = AUDIO_CODECS.get(destination.suffix.lower().lstrip("."), "aac")
    command = [ffmpeg, "-y", "-i", _require(source), "-vn", "-c:a", codec]
    if bitrate_kbps and codec not in ("pcm_s16le", "flac"):
        command += ["-b:a", f"{bitrate_kbps}k"]
    run_command([*command, str(destination)])
    return destination


def convert_audio(ffmpeg: str, source: Path, destination: Path, bitrate_kbps: Optional[int] = None) -> Path:
    return extract_audio(ffmpeg, source, destination, bitrate_kbps)


def merge_videos(ffmpeg: str, sources: Sequence[Path], destination: Path) -> Path:
    """Concatenate clips in order with the concat demuxer, re-encoding the result."""
    with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False) as listing:
        for source in sources:
            resolved = Path(_require(source)).resolve()
            escaped = str(resolved).replace("'", r"'\''")
            listing.write(f"file '{escaped}'\n")
        list_path = Path(listing.name)
    try:
        command = [ffmpeg, "-y", "-f", "concat", "-safe", "0", "-i", str(list_path)]
        command += _video_codecs(destination)
        run_command([*command, str(destination)])
    finally:
        list_path.unlink(missing_ok=True)
    return destination


def make_gif(ffmpeg: str, source: Path, destination: Path, start: float = 0, duration: float = 5, fps: int = 15, width: int = 480) -> Path:
    filters = f"fps={fps},scale={width}:-1:flags=lanczos"
    command = [ffmpeg, "-y", "-ss", str(start), "-t", str(duration), "-i", _require(source), "-vf", filters, "-loop", "0"]
    run_command([*command, str(destination)])
    return destination
