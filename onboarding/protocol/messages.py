"""
Tool: Chat Messages
Purpose: Bot/user turns and the append-only transcript of one conversation

Usage:
    from onboarding.protocol.messages import Transcript
    from onboarding.protocol.payloads import EnvironmentSelect, Text

    transcript = Transcript()
    transcript.append_bot_turn([Text("Which environment?"), EnvironmentSelect()])
    transcript.pending.kind   # 'environment-select'
    transcript.resolve()
    transcript.append_user_turn([Text("Production")])

A transcript is owned by exactly one context: the new-app setup session or a
registered app. Messages are immutable; the only in-place change is
``replace_last_bot_turn``, which swaps a loading payload for its results.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from onboarding.errors import ProtocolError
from onboarding.protocol.payloads import Payload, decision_payloads

logger = logging.getLogger(__name__)


class Role(str, Enum):
    BOT = "bot"
    USER = "user"


@dataclass(frozen=True)
class Message:
    """One chat turn.

    Attributes:
        id: Message UUID, stable across in-place replacement
        role: Who produced the turn
        content: Payloads shown in the turn, in order
        timestamp: When the turn became visible
    """
    role: Role
    content: tuple[Payload, ...]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def decision(self) -> Payload | None:
        decisions = decision_payloads(self.content)
        return decisions[0] if decisions else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "role": self.role.value,
            "content": [p.to_dict() for p in self.content],
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Transcript:
    """Append-only message history with at most one pending decision.

    ``pending`` is the decision payload still waiting for a user answer.
    ``composing`` is True while a bot turn is being "typed" and not yet
    visible.
    """
    messages: list[Message] = field(default_factory=list)
    pending: Payload | None = None
    composing: bool = False
    _pending_message_id: str | None = field(default=None, repr=False)

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):
        return iter(self.messages)

    @property
    def pending_kind(self) -> str | None:
        return self.pending.type if self.pending is not None else None

    def _check_decisions(self, payloads: tuple[Payload, ...], replacing: str | None = None) -> Payload | None:
        decisions = decision_payloads(payloads)
        if len(decisions) > 1:
            raise ProtocolError(
                f"A turn may carry one decision, got {[d.type for d in decisions]}"
            )
        decision = decisions[0] if decisions else None
        if decision is None or self.pending is None:
            return decision
        if replacing is not None and replacing == self._pending_message_id:
            return decision
        if decision.type != self.pending.type:
            raise ProtocolError(
                f"'{self.pending.type}' is still pending; cannot ask '{decision.type}'"
            )
        return decision

    def append_bot_turn(self, payloads: Iterable[Payload]) -> Message:
        content = tuple(payloads)
        decision = self._check_decisions(content)
        message = Message(role=Role.BOT, content=content)
        self.messages.append(message)
        if decision is not None:
            self.pending = decision
            self._pending_message_id = message.id
        return message

    def append_user_turn(self, payloads: Iterable[Payload]) -> Message:
        message = Message(role=Role.USER, content=tuple(payloads))
        self.messages.append(message)
        return message

    def last_bot_message(self) -> Message | None:
        for message in reversed(self.messages):
            if message.role is Role.BOT:
                return message
        return None

    def replace_last_bot_turn(self, payloads: Iterable[Payload]) -> Message | None:
        """Swap the content of the newest bot message, keeping its id and time.

        Returns None without changing anything when no bot message exists.
        Replacing twice with the same content leaves the same history.
        """
        for index in range(len(self.messages) - 1, -1, -1):
            previous = self.messages[index]
            if previous.role is Role.BOT:
                break
        else:
            logger.debug("replace_last_bot_turn with no bot message, ignoring")
            return None

        content = tuple(payloads)
        decision = self._check_decisions(content, replacing=previous.id)
        updated = replace(previous, content=content)
        self.messages[index] = updated

        if decision is not None:
            self.pending = decision
            self._pending_message_id = updated.id
        elif self._pending_message_id == updated.id:
            self.pending = None
            self._pending_message_id = None
        return updated

    def resolve(self) -> Payload | None:
        """Mark the pending decision answered and return it."""
        answered = self.pending
        self.pending = None
        self._pending_message_id = None
        return answered

    # Withdrawing is resolving without an answer (step click, context switch)
    withdraw = resolve

    def to_list(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self.messages]
