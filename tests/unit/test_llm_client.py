"""
tests/unit/test_llm_client.py — Unit tests for llm/client.py

The Azure/OpenAI SDK constructors are patched — no credentials, no network.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
from unittest.mock import MagicMock, patch
from llm.client import LLMClient, LLMNotConfiguredError


def chat_response(content):
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.fixture
def fake_settings():
    with patch("llm.client.settings") as s:
        s.foundry_endpoint = "https://example.services.ai.azure.com"
        s.foundry_api_key = "key"
        s.api_version = "2024-10-21"
        s.enhancement_model = "gpt-4o-mini"
        s.enhancement_max_tokens = 600
        yield s


class TestConstruction:
    def test_no_endpoint_raises(self):
        with patch("llm.client.settings") as s:
            s.foundry_endpoint = ""
            with pytest.raises(LLMNotConfiguredError):
                LLMClient()

    def test_api_key_path(self, fake_settings):
        with patch("llm.client.AzureOpenAI") as azure, \
             patch("llm.client.AIProjectClient") as project:
            client = LLMClient()
        azure.assert_called_once()
        assert azure.call_args.kwargs["api_key"] == "key"
        project.assert_not_called()
        assert client.model == "gpt-4o-mini"

    def test_identity_path(self, fake_settings):
        fake_settings.foundry_api_key = ""
        with patch("llm.client.AzureOpenAI") as azure, \
             patch("llm.client.AIProjectClient") as project, \
             patch("llm.client.DefaultAzureCredential"):
            LLMClient()
        azure.assert_not_called()
        project.return_value.get_openai_client.assert_called_once()


class TestComplete:
    def test_returns_text_with_defaults(self, fake_settings):
        with patch("llm.client.AzureOpenAI") as azure:
            sdk = azure.return_value
            sdk.chat.completions.create.return_value = chat_response('{"title": "T"}')
            text = LLMClient().complete("prompt")
        assert text == '{"title": "T"}'
        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 600
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_none_content_is_empty_string(self, fake_settings):
        with patch("llm.client.AzureOpenAI") as azure:
            azure.return_value.chat.completions.create.return_value = chat_response(None)
            assert LLMClient().complete("prompt") == ""

    def test_api_error_propagates(self, fake_settings):
        with patch("llm.client.AzureOpenAI") as azure:
            azure.return_value.chat.completions.create.side_effect = TimeoutError("slow")
            with pytest.raises(TimeoutError):
                LLMClient().complete("prompt")
