"""
AI writing: prompt construction and an OpenAI-compatible text generator.

Handlers depend on the ``TextGenerator`` protocol only, so the provider can
be swapped (or faked in tests) without touching the tools.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

MAX_TOKENS_CEILING = 4000

ENHANCEMENT_INSTRUCTIONS = {
    "clarity": "improve clarity and remove ambiguity",
    "tone": "enhance the tone and style",
    "readability": "improve readability and flow",
    "vocabulary": "enhance vocabulary and word choice",
    "all": "improve clarity, tone, readability, and vocabulary",
}
SUMMARY_LENGTHS = {"short": ("in 2-3 sentences", 200), "medium": ("in 1-2 paragraphs", 500), "detailed": ("in 3-4 detailed paragraphs", 1000)}
SUMMARY_TYPES = {
    "extractive": "using key sentences from the original text",
    "bullet-points": "as bullet points",
    "abstractive": "in your own words",
}
WRITER_TOKENS = {"short": 500, "medium": 1000, "long": 2000}


class GenerationError(RuntimeError):
    """The text provider is not configured, unreachable, or returned no text."""


class TextGenerator(Protocol):
    def generate(self, prompt: str, max_tokens: int, temperature: float) -> str: ...


@dataclass(frozen=True)
class Prompt:
    text: str
    max_tokens: int
    temperature: float


class OpenAICompatibleGenerator:
    """
    Calls ``POST {base_url}/chat/completions`` with a single user message.

    Works with OpenAI and with any server exposing the same API.

    Attributes:
        base_url: API root, e.g. ``https://api.openai.com/v1``
        api_key: Bearer token; without it every call raises ``GenerationError``
        model: Model name sent with each request
        timeout: Seconds before the HTTP request is abandoned
    """

    def __init__(self, base_url: str, api_key: Optional[str], model: str, timeout: float = 60) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def generate(self, prompt: str, max_tokens: int, temperature: float) -> str:
        if not self.api_key:
            raise GenerationError("No API key configured for the text generation provider")

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "max_tokens": int(max_tokens),
                    "temperature": temperature,
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise GenerationError(f"Text generation request failed: {exc}") from exc

        if not response.ok:
            logger.warning(f"Text generation provider answered {response.status_code}: {response.text[:200]}")
            raise GenerationError(f"Text generation provider answered {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationError("Text generation provider returned an unexpected payload") from exc
        if not content or not content.strip():
            raise GenerationError("Text generation provider returned no text")
        return content.strip()


def _bounded(size: float) -> int:
    return max(1, min(int(size), MAX_TOKENS_CEILING))


def writer_prompt(prompt: str, content_type: str = "article", length: str = "medium", tone: str = "professional") -> Prompt:
    return Prompt(
        f"Write a {length} {content_type} about: {prompt}. Use a {tone} tone.",
        WRITER_TOKENS.get(length, 1000),
        0.7,
    )


def grammar_prompt(text: str, language: str = "english", check_level: str = "advanced") -> Prompt:
    return Prompt(
        f"Please check and correct the grammar, spelling, and punctuation in the following {language} text. "
        f"Provide the corrected version and highlight the changes made. Check level: {check_level}\n\n"
        f"Text to check:\n{text}",
        _bounded(len(text) * 2),
        0.3,
    )


def paraphrase_prompt(text: str, mode: str = "standard", strength: str = "medium") -> Prompt:
    return Prompt(
        f"Please paraphrase the following text using {mode} mode with {strength} strength. "
        f"Maintain the original meaning while changing the wording and structure:\n\n{text}",
        _bounded(len(text) * 1.5),
        0.7,
    )


def summary_prompt(text: str, summary_length: str = "medium", summary_type: str = "abstractive") -> Prompt:
    length_instruction, tokens = SUMMARY_LENGTHS.get(summary_length, SUMMARY_LENGTHS["medium"])
    type_instruction = SUMMARY_TYPES.get(summary_type, SUMMARY_TYPES["abstractive"])
    return Prompt(
        f"Please create a {summary_length} {summary_type} summary of the following text "
        f"{length_instruction} {type_instruction}:\n\n{text}",
        tokens,
        0.5,
    )


def essay_prompt(topic: str, essay_type: str = "argumentative", word_count: int = 500, academic_level: str = "undergraduate") -> Prompt:
    return Prompt(
        f'Write a {word_count}-word {essay_type} essay on the topic: "{topic}". '
        f"The essay should be appropriate for {academic_level} level. Include an introduction, body paragraphs "
        f"with clear arguments/points, and a conclusion. Use proper academic structure and citations where appropriate.",
        _bounded(word_count * 1.5),
        0.7,
    )


def ideas_prompt(niche: str, content_format: str = "blog-posts", idea_count: int = 10) -> Prompt:
    return Prompt(
        f"Generate {idea_count} creative and engaging {content_format} ideas for the {niche} niche/industry. "
        f"For each idea, provide a catchy title and a brief description (2-3 sentences) explaining the content "
        f"concept. Make sure the ideas are unique, relevant, and would appeal to the target audience.",
        _bounded(idea_count * 100),
        0.8,
    )


def translation_prompt(text: str, target_language: str, source_language: str = "auto") -> Prompt:
    source = "Detect the source language and" if source_language == "auto" else f"From {source_language},"
    return Prompt(
        f"{source} translate the following text to {target_language}. Maintain the original meaning, tone, "
        f"and context. Provide only the translation without explanations:\n\n{text}",
        _bounded(len(text) * 2),
        0.3,
    )


def enhancement_prompt(text: str, enhancement_type: str = "all", target_audience: str = "general") -> Prompt:
    instruction = ENHANCEMENT_INSTRUCTIONS.get(enhancement_type, ENHANCEMENT_INSTRUCTIONS["all"])
    return Prompt(
        f"Please enhance the following text by {instruction}. The target audience is {target_audience}. "
        f"Maintain the original meaning while making the text more engaging and professional:\n\n{text}",
        _bounded(len(text) * 1.5),
        0.6,
    )


def plagiarism_prompt(text: str, check_level: str = "standard", include_quotes: bool = False) -> Prompt:
    quotes = "Include quoted text in analysis." if include_quotes else "Exclude properly quoted text from analysis."
    return Prompt(
        f"Analyze the following text for potential plagiarism issues. Check level: {check_level}. {quotes} "
        f"Provide a detailed report including:\n1. Overall originality score (percentage)\n"
        f"2. Potentially problematic sections\n3. Suggestions for improvement\n4. Citation recommendations\n\n"
        f"Text to analyze:\n{text}",
        _bounded(len(text) + 1000),
        0.4,
    )
