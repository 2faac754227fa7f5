"""
Global test configuration: environment isolation and shared fakes.
"""

from collections.abc import Callable
import os
from typing import Any

import httpx
import pytest

from azure_text_processor.core.types import BudgetPolicy, CredentialSet
from azure_text_processor.pipeline import ResponsesAPIHandler
from azure_text_processor.session import ProcessingSession
from azure_text_processor.tokens import TokenizerAdapter


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_azure_env(monkeypatch):
    """Ensure a clean AZURE_OPENAI_* environment for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("AZURE_OPENAI_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("AZURE_TEXT_PROCESSOR_TELEMETRY", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_credential_cache(monkeypatch, tmp_path):
    """Point the credential cache at an isolated temp file.

    Prevents reading a developer's real ~/.config/azure_text_processor cache.
    """
    cache_file = tmp_path / "credential_cache" / "credentials.json"
    monkeypatch.setenv("AZURE_TEXT_PROCESSOR_CONFIG_HOME", str(cache_file))
    return cache_file


# --- Tokenizers ---
@pytest.fixture
def char_tokenizer() -> TokenizerAdapter:
    """One token per character: additive and exact, handy for ceiling arithmetic."""
    return TokenizerAdapter(len)


@pytest.fixture
def word_tokenizer() -> TokenizerAdapter:
    """One token per whitespace-separated word."""
    return TokenizerAdapter(lambda text: len(text.split()))


# --- Credentials and transport fakes ---
@pytest.fixture
def credentials() -> CredentialSet:
    return CredentialSet(
        endpoint="https://example.openai.azure.com",
        api_key="test-key",
        model="o3-pro-2",
        api_version="preview",
    )


def envelope(*texts: str) -> dict[str, Any]:
    """A responses-API body with one message item holding ``texts``."""
    return {
        "output": [
            {
                "type": "message",
                "content": [{"type": "output_text", "text": t} for t in texts],
            }
        ]
    }


@pytest.fixture
def make_envelope() -> Callable[..., dict[str, Any]]:
    return envelope


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it receives."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Build a recording transport from a handler or a fixed status/body."""

    def _make(
        handler: Callable[[httpx.Request], Any] | None = None,
        *,
        status_code: int = 200,
        json: Any = None,
    ) -> RecordingTransport:
        if handler is None:
            body = envelope("ok") if json is None else json

            def handler(_request: httpx.Request) -> httpx.Response:
                return httpx.Response(status_code, json=body)

        return RecordingTransport(handler)

    return _make


@pytest.fixture
def make_session(credentials, word_tokenizer):
    """Build a session wired to a transport; no network or tiktoken involved."""

    def _make(
        transport: httpx.AsyncBaseTransport | None = None,
        *,
        creds: CredentialSet | None = None,
        tokenizer: TokenizerAdapter | None = None,
        policy: BudgetPolicy | None = None,
        **kwargs: Any,
    ) -> ProcessingSession:
        return ProcessingSession(
            credentials if creds is None else creds,
            tokenizer=tokenizer or word_tokenizer,
            policy=policy,
            api_handler=ResponsesAPIHandler(
                transport=transport or httpx.MockTransport(
                    lambda _r: httpx.Response(200, json=envelope("ok"))
                )
            ),
            **kwargs,
        )

    return _make
