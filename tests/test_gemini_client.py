"""
Tests for the Gemini summarizer with the SDK call replaced by a stub.
"""

from types import SimpleNamespace

import pytest

from app.config import settings
from app.exceptions import SummarizationError, SummarizerUnavailable
from app.services.llm_providers.gemini_client import GeminiClient
from app.services.llm_service import get_summarizer


def stub_client(client: GeminiClient, generate_content) -> None:
    client._client = SimpleNamespace(
        aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))
    )


@pytest.fixture
def transcript(tmp_path):
    path = tmp_path / "Acme_2025-01-15.pdf"
    path.write_bytes(b"%PDF-1.4 transcript body")
    return path


async def test_document_is_sent_inline_with_prompt(transcript):
    seen = {}

    async def generate_content(model, contents, config):
        seen.update(model=model, contents=contents, config=config)
        return SimpleNamespace(text="  - Margin guidance of 18-20%\n")

    client = GeminiClient(api_key="test-key", default_model="gemini-test", prompt="PROMPT")
    stub_client(client, generate_content)

    result = await client.summarize_document(transcript)

    assert result == "- Margin guidance of 18-20%"
    assert seen["model"] == "gemini-test"
    document_part, prompt = seen["contents"]
    assert document_part.inline_data.mime_type == "application/pdf"
    assert document_part.inline_data.data == b"%PDF-1.4 transcript body"
    assert prompt == "PROMPT"


async def test_blank_response_becomes_na(transcript):
    async def generate_content(**kwargs):
        return SimpleNamespace(text="   ")

    client = GeminiClient(api_key="test-key")
    stub_client(client, generate_content)

    assert await client.summarize_document(transcript) == "NA"


async def test_text_is_rebuilt_from_candidate_parts(transcript):
    async def generate_content(**kwargs):
        parts = [SimpleNamespace(text="- Capex "), SimpleNamespace(text="of 500 Cr")]
        candidate = SimpleNamespace(
            finish_reason="STOP", content=SimpleNamespace(parts=parts)
        )
        return SimpleNamespace(text=None, candidates=[candidate])

    client = GeminiClient(api_key="test-key")
    stub_client(client, generate_content)

    assert await client.summarize_document(transcript) == "- Capex of 500 Cr"


async def test_sdk_failure_raises_summarization_error(transcript):
    async def generate_content(**kwargs):
        raise RuntimeError("quota exceeded")

    client = GeminiClient(api_key="test-key")
    stub_client(client, generate_content)

    with pytest.raises(SummarizationError):
        await client.summarize_document(transcript)


async def test_missing_document_raises_summarization_error(tmp_path):
    client = GeminiClient(api_key="test-key")
    with pytest.raises(SummarizationError):
        await client.summarize_document(tmp_path / "gone.pdf")


def test_missing_api_key_makes_summarizer_unavailable(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)
    with pytest.raises(SummarizerUnavailable):
        get_summarizer()
