"""Flow controller: the dialogue state machine and its turn scheduler."""

from onboarding.flow.controller import ACKNOWLEDGEMENT, SESSION, FlowController, UserAction
from onboarding.flow.scheduler import Job, TurnQueue

__all__ = [
    "ACKNOWLEDGEMENT",
    "FlowController",
    "Job",
    "SESSION",
    "TurnQueue",
    "UserAction",
]
