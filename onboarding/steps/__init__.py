"""Step graph: which setup steps an app has and in what order."""

from onboarding.steps.graph import (
    STEP_CATALOGUE,
    Step,
    StepStatus,
    build_steps,
    can_start_step,
    next_open_step,
)

__all__ = [
    "STEP_CATALOGUE",
    "Step",
    "StepStatus",
    "build_steps",
    "can_start_step",
    "next_open_step",
]
