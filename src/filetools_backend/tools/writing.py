"""
AI writing tools.

Every tool builds a prompt and hands it to a ``TextGenerator``. A provider
error surfaces as the tool's failure message; the cause is only logged.
"""

from __future__ import annotations

import logging

from ..errors import invalid_option
from ..processors import writing
from ..processors.writing import Prompt, TextGenerator
from .base import HandlerSet, ToolContext, ToolOutcome, optional_one

logger = logging.getLogger(__name__)

API_HINT = "Please check your OpenAI API configuration."


def _failure(action: str) -> str:
    return f"Failed to {action}. {API_HINT}"


def build_writing_handlers(generator: TextGenerator) -> HandlerSet:
    handlers = HandlerSet()

    def generate(context: ToolContext, prefix: str, prompt: Prompt, message: str) -> ToolOutcome:
        content = generator.generate(prompt.text, prompt.max_tokens, prompt.temperature)
        logger.info(f"{context.tool_id} generated {len(content)} characters")
        return ToolOutcome(context.write_text(prefix, content), message, data={"content": content})

    def source_text(context: ToolContext, message: str) -> str:
        content = context.text()
        if not content.strip():
            raise invalid_option(context.tool_id, message)
        return content

    @handlers.tool(
        "ai-writer",
        failure=_failure("generate content"),
        required={"prompt": "Content prompt is required"},
    )
    def writer(context: ToolContext) -> ToolOutcome:
        options = context.options
        content_type = options.get("contentType") or "article"
        prompt = writing.writer_prompt(
            options["prompt"],
            content_type=content_type,
            length=options.get("length") or "medium",
            tone=options.get("tone") or "professional",
        )
        return generate(context, "ai_content", prompt, f"Successfully generated {content_type} content")

    grammar_required = "Text content is required for grammar checking"

    @handlers.tool(
        "grammar-checker",
        files=optional_one(),
        text_option="text",
        failure=_failure("check grammar"),
        required={"text": grammar_required},
    )
    def grammar(context: ToolContext) -> ToolOutcome:
        prompt = writing.grammar_prompt(
            source_text(context, grammar_required),
            language=context.options.get("language") or "english",
            check_level=context.options.get("checkLevel") or "advanced",
        )
        return generate(context, "grammar_checked", prompt, "Successfully checked and corrected grammar")

    paraphrase_required = "Text content is required for paraphrasing"

    @handlers.tool(
        "paraphraser",
        files=optional_one(),
        text_option="text",
        failure=_failure("paraphrase text"),
        required={"text": paraphrase_required},
    )
    def paraphrase(context: ToolContext) -> ToolOutcome:
        prompt = writing.paraphrase_prompt(
            source_text(context, paraphrase_required),
            mode=context.options.get("mode") or "standard",
            strength=context.options.get("strength") or "medium",
        )
        return generate(context, "paraphrased", prompt, "Successfully paraphrased text")

    summary_required = "Text content is required for summarization"

    @handlers.tool(
        "summarizer",
        files=optional_one(),
        text_option="text",
        failure=_failure("summarize text"),
        required={"text": summary_required},
    )
    def summarize(context: ToolContext) -> ToolOutcome:
        length = context.options.get("summaryLength") or "medium"
        summary_type = context.options.get("summaryType") or "abstractive"
        prompt = writing.summary_prompt(source_text(context, summary_required), length, summary_type)
        return generate(context, "summary", prompt, f"Successfully created {length} {summary_type} summary")

    @handlers.tool(
        "essay-writer",
        failure=_failure("generate essay"),
        required={"topic": "Essay topic is required"},
    )
    def essay(context: ToolContext) -> ToolOutcome:
        options = context.options
        essay_type = options.get("essayType") or "argumentative"
        word_count = int(options.get("wordCount") or 500)
        prompt = writing.essay_prompt(
            options["topic"],
            essay_type=essay_type,
            word_count=word_count,
            academic_level=options.get("academicLevel") or "undergraduate",
        )
        return generate(context, "essay", prompt, f"Successfully generated {word_count}-word {essay_type} essay")

    @handlers.tool(
        "content-ideas",
        failure=_failure("generate content ideas"),
        required={"niche": "Content niche/industry is required"},
    )
    def ideas(context: ToolContext) -> ToolOutcome:
        niche = context.options["niche"].strip()
        count = int(context.options.get("ideaCount") or 10)
        prompt = writing.ideas_prompt(niche, idea_count=count)
        return generate(context, "content_ideas", prompt, f"Successfully generated {count} content ideas for {niche}")

    translation_required = "Text content is required for translation"

    @handlers.tool(
        "translator",
        files=optional_one(),
        text_option="text",
        failure=_failure("translate text"),
        required={"text": translation_required, "targetLanguage": "Target language is required"},
    )
    def translate(context: ToolContext) -> ToolOutcome:
        target = context.options["targetLanguage"]
        prompt = writing.translation_prompt(
            source_text(context, translation_required),
            target_language=target,
            source_language=context.options.get("sourceLanguage") or "auto",
        )
        return generate(context, "translated", prompt, f"Successfully translated text to {target}")

    enhancement_required = "Text content is required for enhancement"

    @handlers.tool(
        "text-enhancer",
        files=optional_one(),
        text_option="text",
        failure=_failure("enhance text"),
        required={"text": enhancement_required},
    )
    def enhance(context: ToolContext) -> ToolOutcome:
        audience = context.options.get("targetAudience") or "general"
        prompt = writing.enhancement_prompt(
            source_text(context, enhancement_required),
            enhancement_type=context.options.get("enhancementType") or "all",
            target_audience=audience,
        )
        return generate(context, "enhanced", prompt, f"Successfully enhanced text for {audience} audience")

    plagiarism_required = "Text content is required for plagiarism checking"

    @handlers.tool(
        "plagiarism-checker",
        files=optional_one(),
        text_option="text",
        failure=_failure("check plagiarism"),
        required={"text": plagiarism_required},
    )
    def plagiarism(context: ToolContext) -> ToolOutcome:
        level = context.options.get("checkLevel") or "standard"
        prompt = writing.plagiarism_prompt(
            source_text(context, plagiarism_required),
            check_level=level,
            include_quotes=context.options.get("includeQuotes", False),
        )
        return generate(context, "plagiarism_report", prompt, f"Successfully completed {level} plagiarism check")

    return handlers
