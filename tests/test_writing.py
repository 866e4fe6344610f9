"""
Tests for the AI writing tools, using a fake text generator.
"""

from typing import List, Optional, Tuple

import pytest
import requests

from filetools_backend.configuration import load_settings
from filetools_backend.dispatch import ToolRouter
from filetools_backend.errors import ErrorKind, ToolError
from filetools_backend.lifecycle import OutputLifecycle
from filetools_backend.models import UploadedFile
from filetools_backend.processors import writing
from filetools_backend.processors.writing import GenerationError, OpenAICompatibleGenerator
from filetools_backend.registry import build_registry
from filetools_backend.storage import StorageLayout, UploadIntake
from filetools_backend.tools import build_handlers


class FakeGenerator:
    """Records prompts and answers with canned text."""

    def __init__(self, reply: str = "Generated text.", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Tuple[str, int, float]] = []

    def generate(self, prompt: str, max_tokens: int, temperature: float) -> str:
        self.calls.append((prompt, max_tokens, temperature))
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def layout(tmp_path):
    layout = StorageLayout(tmp_path / "uploads", tmp_path / "output")
    layout.ensure()
    return layout


@pytest.fixture
def router(generator, layout):
    intake = UploadIntake(layout, max_files=10, max_file_size_bytes=1024 * 1024)
    handlers = build_handlers(load_settings(), generator=generator)
    return ToolRouter(build_registry(), handlers, intake, layout, OutputLifecycle(retention_seconds=3600))


class TestPrompts:
    """Tests for prompt construction."""

    def test_writer_prompt_tokens_follow_length(self):
        prompt = writing.writer_prompt("bees", content_type="story", length="long", tone="casual")
        assert "story about: bees" in prompt.text
        assert "casual tone" in prompt.text
        assert prompt.max_tokens == 2000

    def test_essay_tokens_are_bounded(self):
        prompt = writing.essay_prompt("history", word_count=100000)
        assert prompt.max_tokens == writing.MAX_TOKENS_CEILING

    def test_translation_prompt_names_target(self):
        prompt = writing.translation_prompt("hola", "english")
        assert "english" in prompt.text
        assert "hola" in prompt.text


class TestWritingTools:
    """Tests for the writing handlers routed through ToolRouter."""

    def test_ai_writer(self, router, generator):
        result = router.process("ai-writer", [], {"prompt": "solar power", "contentType": "email"})
        assert result.message == "Successfully generated email content"
        assert result.data == {"content": "Generated text."}
        assert result.artifact.file_id.startswith("ai_content_")
        assert result.artifact.file_id.endswith(".txt")
        assert "solar power" in generator.calls[0][0]

    def test_ai_writer_requires_prompt(self, router, generator):
        with pytest.raises(ToolError) as excinfo:
            router.process("ai-writer", [], {})
        assert excinfo.value.message == "Content prompt is required"
        assert generator.calls == []

    def test_summarizer_reads_uploaded_text(self, router, generator, layout):
        path = layout.upload_root / "files-1-1.txt"
        path.write_text("A long article about rivers.")
        uploaded = UploadedFile(original_name="rivers.txt", stored_path=path, size_bytes=28, mime_type="text/plain")

        result = router.process("summarizer", [uploaded], {"summaryLength": "short"})
        assert result.message == "Successfully created short abstractive summary"
        assert "A long article about rivers." in generator.calls[0][0]
        assert not path.exists()

    def test_translator(self, router):
        result = router.process("translator", [], {"text": "hola", "targetLanguage": "french"})
        assert result.message == "Successfully translated text to french"

    def test_provider_error_becomes_processing_failure(self, router, generator):
        generator.error = GenerationError("provider down")
        with pytest.raises(ToolError) as excinfo:
            router.process("paraphraser", [], {"text": "hello"})
        error = excinfo.value
        assert error.kind is ErrorKind.PROCESSING_FAILURE
        assert error.message == "Failed to paraphrase text. Please check your OpenAI API configuration."


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload
        self.text = str(payload)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class TestOpenAICompatibleGenerator:
    """Tests for the HTTP text generator."""

    def test_missing_key(self):
        generator = OpenAICompatibleGenerator("https://api.example.com/v1", None, "model")
        with pytest.raises(GenerationError):
            generator.generate("hi", 10, 0.5)

    def test_success(self, monkeypatch):
        sent = {}

        def fake_post(url, headers, json, timeout):
            sent.update(url=url, headers=headers, json=json)
            return FakeResponse(payload={"choices": [{"message": {"content": "  Hello there  "}}]})

        monkeypatch.setattr(requests, "post", fake_post)
        generator = OpenAICompatibleGenerator("https://api.example.com/v1/", "key", "small-model")
        assert generator.generate("hi", 10, 0.5) == "Hello there"
        assert sent["url"] == "https://api.example.com/v1/chat/completions"
        assert sent["headers"] == {"Authorization": "Bearer key"}
        assert sent["json"]["model"] == "small-model"
        assert sent["json"]["max_tokens"] == 10

    def test_error_status(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse(status_code=503, payload={}))
        generator = OpenAICompatibleGenerator("https://api.example.com/v1", "key", "model")
        with pytest.raises(GenerationError, match="503"):
            generator.generate("hi", 10, 0.5)

    def test_unexpected_payload(self, monkeypatch):
        monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse(payload={"choices": []}))
        generator = OpenAICompatibleGenerator("https://api.example.com/v1", "key", "model")
        with pytest.raises(GenerationError, match="unexpected payload"):
            generator.generate("hi", 10, 0.5)

    def test_connection_error(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(requests, "post", refuse)
        generator = OpenAICompatibleGenerator("https://api.example.com/v1", "key", "model")
        with pytest.raises(GenerationError, match="request failed"):
            generator.generate("hi", 10, 0.5)


class TestWritingApi:
    """Tests for the writing tools through the API without a configured key."""

    def test_missing_api_key_is_processing_failure(self, client):
        response = client.post("/api/tools/ai-writer/process", data={"prompt": "bees"})
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to generate content. Please check your OpenAI API configuration."
