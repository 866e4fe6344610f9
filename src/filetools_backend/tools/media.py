"""Video and audio tools. Every routine runs ffmpeg as a subprocess."""

from __future__ import annotations

from typing import Any, Dict, Sequence

from ..errors import invalid_option
from ..models import UploadedFile
from ..processors import media
from ..utils import compression_ratio
from .base import HandlerSet, ToolContext, ToolOutcome, Validator, at_least, exactly

FFMPEG_HINT = "Please ensure FFmpeg is installed."


def _single_video(purpose: str):
    return exactly(1, f"Exactly 1 video file is required for {purpose}")


def _failure(action: str) -> str:
    return f"Failed to {action}. {FFMPEG_HINT}"


def _end_after_start(tool_id: str) -> Validator:
    def validate(files: Sequence[UploadedFile], options: Dict[str, Any]) -> None:
        start, end = options.get("startTime") or 0, options.get("endTime")
        if end is not None and end <= start:
            raise invalid_option(tool_id, "End time must be greater than start time")

    return validate


def _bitrate(label: str) -> int:
    """``"192kbps"`` -> ``192``."""
    return int(label.lower().replace("kbps", "").strip())


def build_media_handlers(ffmpeg: str = "ffmpeg") -> HandlerSet:
    handlers = HandlerSet()

    @handlers.tool("video-convert", files=_single_video("conversion"), failure=_failure("convert video"))
    def convert(context: ToolContext) -> ToolOutcome:
        target = context.options.get("format") or "mp4"
        destination = context.output("converted", target)
        media.convert_video(ffmpeg, context.file.stored_path, destination, quality=context.options.get("quality") or "medium")
        return ToolOutcome(destination, f"Successfully converted video to {target.upper()}")

    @handlers.tool("video-compress", files=_single_video("compression"), failure=_failure("compress video"))
    def compress(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.output("compressed", source.extension.lstrip(".") or "mp4")
        media.compress_video(
            ffmpeg,
            source.stored_path,
            destination,
            level=context.options.get("compressionLevel") or "medium",
            target_size_mb=context.options.get("targetSize"),
        )
        ratio = compression_ratio(source.size_bytes, destination.stat().st_size)
        return ToolOutcome(
            destination,
            f"Successfully compressed video by {ratio}%",
            data={"originalSize": source.size_bytes, "compressionRatio": ratio},
        )

    @handlers.tool(
        "video-trimmer",
        files=_single_video("trimming"),
        validate=_end_after_start("video-trimmer"),
        failure=_failure("trim video"),
        required={"endTime": "Start time and end time are required"},
    )
    def trim(context: ToolContext) -> ToolOutcome:
        start, end = context.options.get("startTime") or 0, context.options["endTime"]
        source = context.file
        destination = context.output("trimmed", source.extension.lstrip(".") or "mp4")
        media.trim_video(ffmpeg, source.stored_path, destination, start, end - start)
        return ToolOutcome(destination, f"Successfully trimmed video from {start}s to {end}s")

    @handlers.tool(
        "video-editor",
        files=_single_video("editing"),
        validate=_end_after_start("video-editor"),
        failure=_failure("edit video"),
    )
    def edit(context: ToolContext) -> ToolOutcome:
        options = context.options
        source = context.file
        destination = context.output("edited", source.extension.lstrip(".") or "mp4")
        media.edit_video(
            ffmpeg,
            source.stored_path,
            destination,
            start=options.get("startTime") or 0,
            end=options.get("endTime"),
            brightness=options.get("brightness") or 0,
            contrast=options.get("contrast") or 0,
        )
        return ToolOutcome(destination, "Successfully edited video")

    @handlers.tool("video-rotator", files=_single_video("rotation"), failure=_failure("rotate video"))
    def rotate(context: ToolContext) -> ToolOutcome:
        rotation = int(context.options.get("rotation") or 90)
        source = context.file
        destination = context.output("rotated", source.extension.lstrip(".") or "mp4")
        media.rotate_video(
            ffmpeg,
            source.stored_path,
            destination,
            angle=rotation,
            flip_horizontal=context.options.get("flipHorizontal", False),
            flip_vertical=context.options.get("flipVertical", False),
        )
        return ToolOutcome(destination, f"Successfully rotated video by {rotation} degrees")

    @handlers.tool("audio-extractor", files=_single_video("audio extraction"), failure=_failure("extract audio"))
    def extract_audio(context: ToolContext) -> ToolOutcome:
        audio_format = context.options.get("audioFormat") or "mp3"
        destination = context.output("extracted_audio", audio_format)
        media.extract_audio(
            ffmpeg,
            context.file.stored_path,
            destination,
            bitrate_kbps=_bitrate(context.options.get("quality") or "192kbps"),
        )
        return ToolOutcome(destination, f"Successfully extracted audio as {audio_format.upper()}")

    @handlers.tool(
        "video-merger",
        files=at_least(2, "At least 2 video files are required for merging"),
        failure=_failure("merge videos"),
    )
    def merge(context: ToolContext) -> ToolOutcome:
        destination = context.output("merged", context.options.get("outputFormat") or "mp4")
        media.merge_videos(ffmpeg, [upload.stored_path for upload in context.files], destination)
        return ToolOutcome(destination, f"Successfully merged {len(context.files)} videos")

    @handlers.tool("gif-maker", files=_single_video("GIF creation"), failure=_failure("create GIF"))
    def gif(context: ToolContext) -> ToolOutcome:
        options = context.options
        duration, fps = options.get("duration") or 5, int(options.get("fps") or 15)
        destination = context.output("animated", "gif")
        media.make_gif(
            ffmpeg,
            context.file.stored_path,
            destination,
            start=options.get("startTime") or 0,
            duration=duration,
            fps=fps,
            width=int(options.get("width") or 480),
        )
        return ToolOutcome(destination, f"Successfully created GIF from video ({duration}s, {fps}fps)")

    return handlers
