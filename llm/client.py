"""
llm/client.py — The ONLY file that imports the Azure/OpenAI SDK.

The archive needs exactly one LLM capability: turn a prompt into a short
text answer (the enhancement JSON). That is a stateless, single-turn call,
so this wrapper exposes only the Chat Completions API:

  client.complete(prompt) → enhancement_model → plain string

TWO AUTH PATHS:
  Path A — foundry_api_key set   → AzureOpenAI with the key
  Path B — foundry_api_key blank → AIProjectClient + DefaultAzureCredential
                                   (managed identity / az login)

  Both need foundry_endpoint. If it is blank the client cannot be built at
  all; LLMClient raises LLMNotConfiguredError and the enhancer treats that
  as "no enhancement available" instead of failing the submission.

USAGE:
  from llm.client import LLMClient
  client = LLMClient()
  text = client.complete("Return JSON with a title for: ...")
"""

from openai import AzureOpenAI, OpenAI

from azure.ai.projects import AIProjectClient
from azure.identity import DefaultAzureCredential

from config import settings


class LLMNotConfiguredError(RuntimeError):
    """Raised when no Foundry endpoint is configured."""


class LLMClient:
    """
    Thin wrapper around Azure AI Foundry → Chat Completions.

    Raises on API errors — the caller (Enhancer) decides what a failure means.
    """

    def __init__(self) -> None:
        if not settings.foundry_endpoint:
            raise LLMNotConfiguredError(
                "FOUNDRY_ENDPOINT is not set — AI enhancement is disabled"
            )

        if settings.foundry_api_key:
            # Path A: API key auth
            self._client: OpenAI = AzureOpenAI(
                api_key=settings.foundry_api_key,
                azure_endpoint=settings.foundry_endpoint,
                api_version=settings.api_version,
            )
        else:
            # Path B: Managed identity / az login
            project_client = AIProjectClient(
                endpoint=settings.foundry_endpoint,
                credential=DefaultAzureCredential(),
            )
            self._client = project_client.get_openai_client()

        self._model = settings.enhancement_model

    @property
    def model(self) -> str:
        return self._model

    def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        """
        Call enhancement_model via Chat Completions API. Returns plain text.

        Returns "" when the model answers with no text content.
        Raises on API error — caller should handle with try/except.
        """
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens or settings.enhancement_max_tokens,
        )
        content = response.choices[0].message.content
        return content if isinstance(content, str) else ""
