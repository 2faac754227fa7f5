"""API stage: one POST to the Azure OpenAI responses endpoint.

The stage issues exactly one request per call. There is no retry, and a
timeout is only enforced when one is configured; without it a hung request
keeps the caller waiting. Any non-2xx status and any transport error becomes
an `APIError` failure. A 2xx body that is not JSON is returned as an empty
envelope so that extraction degrades to the placeholder text.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

import httpx

from azure_text_processor.core.types import (
    CredentialSet,
    Failure,
    Result,
    Success,
)
from azure_text_processor.exceptions import APIError
from azure_text_processor.pipeline.base import BaseAsyncHandler
from azure_text_processor.telemetry import TelemetryContext, TelemetryContextProtocol

logger = logging.getLogger(__name__)

RESPONSES_PATH = "/openai/v1/responses"


@dataclasses.dataclass(frozen=True, slots=True)
class ResponsesRequest:
    """A fully built request; holds its own credential snapshot."""

    credentials: CredentialSet
    payload: str

    @property
    def url(self) -> str:
        return self.credentials.endpoint.rstrip("/") + RESPONSES_PATH

    @property
    def params(self) -> dict[str, str]:
        return {"api-version": self.credentials.api_version}

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "api-key": self.credentials.api_key,
        }

    @property
    def body(self) -> dict[str, str]:
        return {"model": self.credentials.model, "input": self.payload}


class ResponsesAPIHandler(
    BaseAsyncHandler[ResponsesRequest, dict[str, Any], APIError]
):
    """Sends a `ResponsesRequest` and returns the decoded JSON envelope."""

    def __init__(
        self,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            timeout: Seconds before the request is abandoned; None waits forever.
            transport: Optional httpx transport (tests inject a MockTransport).
            telemetry: Optional telemetry context.
        """
        self.timeout = timeout
        self._transport = transport
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    def _create_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def handle(
        self, command: ResponsesRequest
    ) -> Result[dict[str, Any], APIError]:
        """Issue the request once and return the envelope or an `APIError`."""
        try:
            with self._telemetry("api.responses", model=command.credentials.model):
                async with self._create_http_client() as client:
                    response = await client.post(
                        command.url,
                        params=command.params,
                        headers=command.headers,
                        json=command.body,
                    )
        except httpx.TimeoutException as e:
            logger.error("Request to %s timed out: %s", command.url, e)
            return Failure(APIError("Request to the responses endpoint timed out"))
        except httpx.HTTPError as e:
            logger.error("Request to %s failed: %s", command.url, e)
            return Failure(APIError(f"Could not reach the responses endpoint: {e}"))

        if not response.is_success:
            logger.error(
                "Responses endpoint returned HTTP %d for %s",
                response.status_code,
                command.url,
            )
            self._telemetry.count("api.http_error", status=response.status_code)
            return Failure(
                APIError(
                    f"HTTP error! status: {response.status_code}",
                    status_code=response.status_code,
                )
            )

        try:
            data = response.json()
        except ValueError:
            logger.warning("Responses endpoint returned a non-JSON body")
            return Success({})
        if not isinstance(data, dict):
            logger.warning(
                "Responses endpoint returned JSON %s, expected an object",
                type(data).__name__,
            )
            return Success({})
        return Success(data)
