"""
Shared plumbing for the answer handlers of the registration and setup flows.

A handler receives the pending payload and the raw answer value. It must
validate the answer completely (raising ValidationError) before it changes
any state, so a rejected answer leaves everything as it was.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable

from onboarding.errors import ValidationError
from onboarding.protocol.payloads import Option, Payload

if TYPE_CHECKING:
    from onboarding.flow.controller import FlowController

# Context key of the new-app draft session; registered apps use their id
SESSION = "session"


def require_choice(value: Any, choices: Iterable[str], what: str = "answer") -> str:
    choices = tuple(choices)
    if not isinstance(value, str) or value not in choices:
        raise ValidationError(f"{what} must be one of {list(choices)}, got {value!r}")
    return value


def require_text(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{what} is required")
    return value.strip()


def require_list(value: Any, choices: Iterable[str], what: str, allow_empty: bool = False) -> list[str]:
    choices = tuple(choices)
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{what} must be a list")
    if not all(isinstance(i, str) for i in value):
        raise ValidationError(f"Every {what} must be text")
    items = list(dict.fromkeys(value))
    unknown = [i for i in items if i not in choices]
    if unknown:
        raise ValidationError(f"Unknown {what}: {unknown}")
    if not items and not allow_empty:
        raise ValidationError(f"Select at least one {what}")
    return items


def require_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError(f"{what} must be an object")
    return value


def option_values(options: Iterable[Option]) -> list[str]:
    return [o.value for o in options]


def option_label(options: Iterable[Option], value: str) -> str:
    for option in options:
        if option.value == value:
            return option.label
    return value


class FlowPart:
    """Base for a group of answer handlers keyed by payload kind."""

    def __init__(self, flow: "FlowController"):
        self.flow = flow
        self.handlers: dict[str, Callable] = {}

    @property
    def config(self):
        return self.flow.config

    def handler_for(self, pending: Payload) -> Callable:
        handler = self.handlers.get(pending.type)
        if handler is None:
            raise KeyError(f"No handler for pending '{pending.type}'")
        return handler
