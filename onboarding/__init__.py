"""SDK Onboarding - Guided conversational setup for measurement SDK integration

Philosophy:
    Setup should feel like a conversation, not a checklist.
    Each bot turn carries exactly the data its interactive control needs,
    never how it is drawn.

Components:
    protocol/: Typed chat payloads, messages and transcripts
    steps/: Step graph builder and prerequisite checks
    registry/: Registered apps and the new-app draft session
    providers/: Store search and dashboard detection (async, pluggable)
    flow/: The dialogue state machine and its turn scheduler
    survey/: Pre-setup questionnaire that seeds the session
    api/: FastAPI render boundary
"""

from pathlib import Path

__version__ = "0.3.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"

__all__ = [
    "ARGS_DIR",
    "PROJECT_ROOT",
    "__version__",
]
