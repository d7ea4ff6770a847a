"""Client for the DeepSeek chat-completion API."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator

import httpx
import structlog

from deepseek_relay.config import Settings
from deepseek_relay.errors import (
    ConfigurationError,
    UpstreamProtocolError,
    UpstreamTransportError,
)
from deepseek_relay.relay.decoder import SSEDecoder
from deepseek_relay.relay.models import ChatRequest, StreamResult, UpstreamEvent
from deepseek_relay.relay.request_builder import build_headers, build_payload

logger = structlog.get_logger()

_GENERIC_UPSTREAM_ERROR = "Error calling the DeepSeek API"


class DeepSeekClient:
    """Async client for POST {base_url}/chat/completions.

    Streaming calls go through ``stream_events``, which decodes the raw SSE
    body itself so reasoning_content deltas are preserved. The shared
    httpx.AsyncClient is created lazily and closed by ``close``.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = settings.deepseek_api_key
        self._url = settings.deepseek_base_url.rstrip("/") + "/chat/completions"
        self._http_client = http_client

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self._settings.deepseek_timeout)
        return self._http_client

    def _ensure_configured(self) -> None:
        if not self._api_key:
            raise ConfigurationError("API key is not configured")

    async def stream_events(self, chat_request: ChatRequest) -> AsyncGenerator[UpstreamEvent, None]:
        """Stream upstream events for one chat request.

        Always ends with exactly one DoneEvent unless an error is raised.
        Closing the generator early (client disconnect) releases the
        upstream connection.

        Raises:
            ConfigurationError: no API key.
            UpstreamTransportError: connection, DNS or timeout failure.
            UpstreamProtocolError: upstream answered with a non-200 status.
        """
        self._ensure_configured()
        payload = build_payload(chat_request.model_copy(update={"stream": True}), self._settings)
        headers = build_headers(self._api_key, stream=True)
        client = self._get_http_client()
        decoder = SSEDecoder()
        chunk_count = 0

        logger.info("upstream_stream_start", model=chat_request.model, url=self._url)

        try:
            async with client.stream("POST", self._url, json=payload, headers=headers) as response:
                if response.status_code != 200:
                    body = await response.aread()
                    raise _protocol_error(response.status_code, body)

                async for chunk in response.aiter_bytes():
                    chunk_count += 1
                    for event in decoder.feed(chunk):
                        yield event
                    if decoder.done:
                        break
        except httpx.TransportError as e:
            logger.warning("upstream_transport_error", error=str(e), model=chat_request.model)
            raise UpstreamTransportError(str(e) or type(e).__name__) from e

        for event in decoder.finish():
            yield event

        logger.info(
            "upstream_stream_complete",
            model=chat_request.model,
            total_chunks_received=chunk_count,
        )

    async def complete(self, chat_request: ChatRequest) -> StreamResult:
        """Run a non-streaming completion and return the whole answer.

        Raises:
            ConfigurationError: no API key.
            UpstreamTransportError: connection, DNS or timeout failure.
            UpstreamProtocolError: non-200 status or malformed body.
        """
        self._ensure_configured()
        payload = build_payload(chat_request.model_copy(update={"stream": False}), self._settings)
        headers = build_headers(self._api_key, stream=False)
        client = self._get_http_client()

        logger.info("upstream_request_start", model=chat_request.model, url=self._url)

        try:
            response = await client.post(self._url, json=payload, headers=headers)
        except httpx.TransportError as e:
            logger.warning("upstream_transport_error", error=str(e), model=chat_request.model)
            raise UpstreamTransportError(str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise _protocol_error(response.status_code, response.content)

        try:
            data = response.json()
            message = data["choices"][0]["message"]
            answer = message.get("content") or ""
            reasoning = message.get("reasoning_content")
            usage = data.get("usage")
            if not isinstance(answer, str):
                raise TypeError("content is not a string")
            if reasoning is not None and not isinstance(reasoning, str):
                raise TypeError("reasoning_content is not a string")
            if usage is not None and not isinstance(usage, dict):
                raise TypeError("usage is not an object")
            result = StreamResult(
                response=answer,
                reasoning_content=reasoning,
                usage=usage,
                model=chat_request.model,
            )
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            # pydantic.ValidationError is a ValueError
            raise UpstreamProtocolError(
                "Malformed response from the DeepSeek API",
                details={"body": response.text[:1000]},
            ) from e

        logger.info(
            "upstream_request_complete",
            model=chat_request.model,
            answer_length=len(answer),
            has_reasoning=reasoning is not None,
        )

        return result

    async def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()


def _protocol_error(status_code: int, body: bytes) -> UpstreamProtocolError:
    """Build an error from a non-200 upstream response, preferring upstream's message."""
    details: dict = {"status_code": status_code}
    message = f"{_GENERIC_UPSTREAM_ERROR} (HTTP {status_code})"
    try:
        parsed = json.loads(body)
    except ValueError:
        parsed = None
        details["body"] = body.decode("utf-8", errors="replace")[:1000]

    if isinstance(parsed, dict):
        details["body"] = parsed
        error = parsed.get("error")
        if isinstance(error, dict) and error.get("message"):
            message = error["message"]
        elif isinstance(error, str) and error:
            message = error

    logger.warning("upstream_protocol_error", status_code=status_code, error=message)
    return UpstreamProtocolError(message, details=details)
