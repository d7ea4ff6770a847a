"""DeepSeek streaming relay pipeline."""

from deepseek_relay.relay.aggregator import DeltaAggregator
from deepseek_relay.relay.client import DeepSeekClient
from deepseek_relay.relay.decoder import SSEDecoder
from deepseek_relay.relay.emitter import SSEEmitter
from deepseek_relay.relay.models import ChatRequest, ProgressNotification, StreamResult

__all__ = [
    "ChatRequest",
    "DeepSeekClient",
    "DeltaAggregator",
    "ProgressNotification",
    "SSEDecoder",
    "SSEEmitter",
    "StreamResult",
]
