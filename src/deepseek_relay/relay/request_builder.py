"""Build the upstream chat-completion request."""

from deepseek_relay.config import Settings
from deepseek_relay.relay.models import ChatRequest


def build_payload(chat_request: ChatRequest, settings: Settings) -> dict:
    """Build the JSON body for POST /chat/completions."""
    return {
        "model": chat_request.model,
        "messages": [
            {"role": "user", "content": chat_request.message},
        ],
        "max_tokens": settings.deepseek_max_tokens,
        "temperature": settings.deepseek_temperature,
        "stream": chat_request.stream,
    }


def build_headers(api_key: str, stream: bool = True) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": "text/event-stream" if stream else "application/json",
    }
