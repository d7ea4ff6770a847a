"""Accumulate upstream deltas into progress notifications."""

from __future__ import annotations

from dataclasses import dataclass

from deepseek_relay.relay.models import (
    DeltaEvent,
    DoneEvent,
    ProgressNotification,
    StreamResult,
    UpstreamEvent,
    UsageEvent,
    UsageStats,
)


@dataclass
class StreamState:
    """Running totals for one request."""

    reasoning_so_far: str = ""
    answer_so_far: str = ""
    usage: UsageStats | None = None


class DeltaAggregator:
    """Folds upstream events into cumulative text, one request at a time.

    Each delta yields a notification immediately, in the order the frames
    were decoded. A ``DoneEvent`` freezes the state and makes ``result``
    available.
    """

    def __init__(self, model: str) -> None:
        self._model = model
        self._state = StreamState()
        self._result: StreamResult | None = None

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> StreamResult:
        if self._result is None:
            raise RuntimeError("stream has not finished")
        return self._result

    def apply(self, event: UpstreamEvent) -> list[ProgressNotification]:
        """Fold one event into the state and return the notifications it produces."""
        if self._result is not None:
            raise RuntimeError("stream already finished")

        if isinstance(event, DeltaEvent):
            return self._apply_delta(event)
        if isinstance(event, UsageEvent):
            self._state.usage = event.tokens
            return []
        if isinstance(event, DoneEvent):
            self._result = StreamResult(
                response=self._state.answer_so_far,
                reasoning_content=self._state.reasoning_so_far,
                usage=self._state.usage,
                model=self._model,
            )
            return []
        raise TypeError(f"unknown upstream event: {event!r}")

    def _apply_delta(self, event: DeltaEvent) -> list[ProgressNotification]:
        notifications: list[ProgressNotification] = []

        if event.reasoning:
            self._state.reasoning_so_far += event.reasoning
            notifications.append(
                ProgressNotification(
                    type="thinking",
                    content=event.reasoning,
                    full_thinking=self._state.reasoning_so_far,
                )
            )

        if event.answer:
            self._state.answer_so_far += event.answer
            notifications.append(
                ProgressNotification(
                    type="response",
                    content=event.answer,
                    full_response=self._state.answer_so_far,
                )
            )

        return notifications
