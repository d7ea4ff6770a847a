"""Chat and health endpoints."""

from contextlib import aclosing
from datetime import datetime, timezone

import pydantic
import structlog
from aiohttp import web

from deepseek_relay.config import Settings
from deepseek_relay.errors import ConfigurationError, RelayError, ValidationError
from deepseek_relay.relay.aggregator import DeltaAggregator
from deepseek_relay.relay.client import DeepSeekClient
from deepseek_relay.relay.emitter import SSEEmitter
from deepseek_relay.relay.models import ChatRequest

logger = structlog.get_logger()

HEALTH_MESSAGE = "DeepSeek relay is running"


def error_response(error: RelayError) -> web.Response:
    body = {"success": False, "error": error.message}
    if error.details:
        body["details"] = error.details
    return web.json_response(body, status=error.status_code)


async def parse_chat_request(request: web.Request, settings: Settings) -> ChatRequest:
    """Build a ChatRequest from the JSON body.

    Raises:
        ValidationError: body is not a JSON object or has no message.
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    fields = {
        k: v for k, v in body.items()
        if k in ("message", "model", "stream") and v is not None
    }
    if not fields.get("model"):
        fields["model"] = settings.deepseek_model
    try:
        return ChatRequest(**fields)
    except pydantic.ValidationError as e:
        loc = e.errors()[0]["loc"]
        field = str(loc[0]) if loc else "body"
        if field == "message":
            raise ValidationError("Message content must not be empty") from e
        raise ValidationError(f"Invalid value for '{field}'") from e


async def chat(request: web.Request) -> web.StreamResponse:
    """POST /api/chat - relay one message to DeepSeek."""
    settings: Settings = request.app["settings"]
    client: DeepSeekClient = request.app["deepseek_client"]

    try:
        chat_request = await parse_chat_request(request, settings)
    except ValidationError as e:
        logger.info("chat_request_rejected", reason=e.message)
        return error_response(e)

    if not settings.api_key_loaded:
        logger.error("api_key_missing", path=request.path)
        return error_response(ConfigurationError("API key is not configured"))

    logger.info(
        "chat_request_received",
        message_preview=chat_request.message[:50],
        model=chat_request.model,
        stream=chat_request.stream,
    )

    if not chat_request.stream:
        return await _chat_once(client, chat_request)
    return await _chat_stream(request, client, chat_request)


async def _chat_once(client: DeepSeekClient, chat_request: ChatRequest) -> web.Response:
    try:
        result = await client.complete(chat_request)
    except RelayError as e:
        logger.warning("chat_request_failed", error=e.message, model=chat_request.model)
        return error_response(e)

    body = {
        "success": True,
        "response": result.response,
        "usage": result.usage,
        "model": result.model,
    }
    if result.reasoning_content:
        body["reasoning_content"] = result.reasoning_content

    logger.info("chat_request_complete", model=result.model, answer_length=len(result.response))
    return web.json_response(body)


async def _chat_stream(
    request: web.Request,
    client: DeepSeekClient,
    chat_request: ChatRequest,
) -> web.StreamResponse:
    emitter = SSEEmitter()
    await emitter.prepare(request)
    aggregator = DeltaAggregator(model=chat_request.model)

    try:
        async with aclosing(client.stream_events(chat_request)) as events:
            async for event in events:
                for notification in aggregator.apply(event):
                    await emitter.send(notification)

        await emitter.send_done()
        result = aggregator.result
        logger.info(
            "chat_stream_complete",
            model=result.model,
            answer_length=len(result.response),
            reasoning_length=len(result.reasoning_content or ""),
            usage=result.usage,
        )
    except ConnectionResetError:
        # upstream generator already closed by aclosing
        logger.info("client_disconnected", model=chat_request.model)
    except RelayError as e:
        logger.warning("chat_stream_failed", error=e.message, model=chat_request.model)
        await _send_error_quietly(emitter, e.message)
    except Exception as e:
        logger.exception("chat_stream_error", model=chat_request.model)
        await _send_error_quietly(emitter, str(e) or type(e).__name__)
    finally:
        await emitter.close()

    return emitter.response


async def _send_error_quietly(emitter: SSEEmitter, message: str) -> None:
    try:
        await emitter.send_error(message)
    except ConnectionResetError:
        logger.info("client_disconnected_before_error_frame")


async def chat_method_not_allowed(request: web.Request) -> web.Response:
    return web.json_response({"success": False, "error": "Method not allowed"}, status=405)


async def health(request: web.Request) -> web.Response:
    """Health check endpoint - no API key required."""
    settings: Settings = request.app["settings"]
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return web.json_response({
        "success": True,
        "message": HEALTH_MESSAGE,
        "timestamp": timestamp,
        "apiKeyLoaded": settings.api_key_loaded,
    })
