"""Message protocol: typed payloads, chat turns and transcripts."""

from onboarding.protocol.messages import Message, Role, Transcript
from onboarding.protocol.payloads import PAYLOAD_TYPES, Payload, decision_payloads

__all__ = [
    "Message",
    "PAYLOAD_TYPES",
    "Payload",
    "Role",
    "Transcript",
    "decision_payloads",
]
