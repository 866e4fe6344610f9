"""
Handler records for every catalog tool, grouped by family.

``build_handlers`` assembles the complete set from settings; families that
shell out or call a remote provider receive their collaborators here.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..configuration import Settings
from ..processors.ocr import configure_tesseract
from ..processors.writing import OpenAICompatibleGenerator, TextGenerator
from . import developer, images, ocr, tabular, text
from .base import HandlerSet
from .converters import build_converter_handlers
from .media import build_media_handlers
from .pdf import build_pdf_handlers
from .writing import build_writing_handlers

logger = logging.getLogger(__name__)


def build_generator(settings: Settings) -> TextGenerator:
    ai = settings.ai
    if not ai.api_key:
        logger.warning("No AI API key configured; AI writing tools will fail until one is set")
    return OpenAICompatibleGenerator(ai.base_url, ai.api_key, ai.model, ai.timeout_seconds)


def build_handlers(settings: Settings, generator: Optional[TextGenerator] = None) -> HandlerSet:
    """
    Build the handler set for every tool.

    Args:
        settings: Application settings (binary paths, AI provider)
        generator: Text generator for the AI writing tools; defaults to the
            configured OpenAI-compatible provider

    Returns:
        HandlerSet covering the whole catalog
    """
    configure_tesseract(settings.binaries.tesseract)
    handlers = HandlerSet()
    handlers.merge(build_pdf_handlers(settings.binaries.soffice))
    handlers.merge(images.HANDLERS)
    handlers.merge(build_media_handlers(settings.binaries.ffmpeg))
    handlers.merge(tabular.HANDLERS)
    handlers.merge(text.HANDLERS)
    handlers.merge(developer.HANDLERS)
    handlers.merge(build_converter_handlers(settings.binaries.ffmpeg))
    handlers.merge(ocr.HANDLERS)
    handlers.merge(build_writing_handlers(generator or build_generator(settings)))
    logger.debug(f"Built {len(handlers)} tool handlers")
    return handlers
