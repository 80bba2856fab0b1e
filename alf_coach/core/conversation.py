"""Conversation state machine for a single stage chat.

State is a tagged union (``Idle``, ``AwaitingModel``, ``Ready``) and every
transition goes through the pure ``reduce`` function, so the same rules apply
whether the transcript lives in a request handler, a test, or a UI mirror.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Union

from alf_coach.db.models import ChatMessage

APOLOGY = "Sorry, I had trouble with that request. Could you try rephrasing?"


# --- States ---


@dataclass(frozen=True)
class Idle:
    """Nothing in flight; the educator may type."""

    messages: tuple[ChatMessage, ...] = ()


@dataclass(frozen=True)
class AwaitingModel:
    """One request in flight; input is disabled until it resolves."""

    messages: tuple[ChatMessage, ...]
    pending_turn_id: str


@dataclass(frozen=True)
class Ready:
    """The last assistant reply completed the stage; the advance affordance is shown."""

    messages: tuple[ChatMessage, ...] = ()


ChatState = Union[Idle, AwaitingModel, Ready]


# --- Events ---


@dataclass(frozen=True)
class UserSent:
    message: ChatMessage


@dataclass(frozen=True)
class ModelReplied:
    message: ChatMessage


@dataclass(frozen=True)
class ModelFailed:
    reason: str = ""


@dataclass(frozen=True)
class SnapshotReceived:
    """A fresh copy of the stored transcript arrived."""

    messages: tuple[ChatMessage, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Reset:
    messages: tuple[ChatMessage, ...] = field(default_factory=tuple)


ChatEvent = Union[UserSent, ModelReplied, ModelFailed, SnapshotReceived, Reset]


def last_assistant_message(messages: tuple[ChatMessage, ...] | list[ChatMessage]) -> ChatMessage | None:
    for message in reversed(messages):
        if message.role == "assistant":
            return message
    return None


def can_advance(messages: tuple[ChatMessage, ...] | list[ChatMessage]) -> bool:
    """True only when the most recent assistant message flags the stage complete."""
    last = last_assistant_message(messages)
    return last is not None and last.is_stage_complete is True


def _settled(messages: tuple[ChatMessage, ...]) -> ChatState:
    return Ready(messages) if can_advance(messages) else Idle(messages)


def _merge_by_id(
    local: tuple[ChatMessage, ...], stored: tuple[ChatMessage, ...]
) -> tuple[ChatMessage, ...]:
    seen = {m.id for m in local}
    return local + tuple(m for m in stored if m.id not in seen)


def reduce(state: ChatState, event: ChatEvent) -> ChatState:
    """Apply ``event`` to ``state``. Events that do not apply leave the state unchanged."""
    if isinstance(event, Reset):
        return _settled(tuple(event.messages))

    if isinstance(event, UserSent):
        if isinstance(state, AwaitingModel):
            return state
        return AwaitingModel(state.messages + (event.message,), pending_turn_id=event.message.id)

    if isinstance(event, ModelReplied):
        if not isinstance(state, AwaitingModel):
            return state
        return _settled(state.messages + (event.message,))

    if isinstance(event, ModelFailed):
        if not isinstance(state, AwaitingModel):
            return state
        return Idle(state.messages + (ChatMessage.assistant(APOLOGY),))

    if isinstance(event, SnapshotReceived):
        stored = tuple(event.messages)
        if isinstance(state, AwaitingModel):
            return replace(state, messages=_merge_by_id(state.messages, stored))
        if not stored:
            return state
        return _settled(stored)

    raise TypeError(f"Unknown chat event: {type(event).__name__}")


def initial_state(messages: list[ChatMessage] | tuple[ChatMessage, ...], greeting: str) -> ChatState:
    """Start from the stored transcript, seeding an empty one with ``greeting``."""
    if messages:
        return _settled(tuple(messages))
    return Idle((ChatMessage.assistant(greeting),))


def is_input_enabled(state: ChatState) -> bool:
    return not isinstance(state, AwaitingModel)


def state_name(state: ChatState) -> str:
    return type(state).__name__
