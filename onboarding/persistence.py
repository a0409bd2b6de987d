"""
Tool: Session Store
Purpose: key -> JSON-string storage shared by the survey and the setup session

Usage:
    from onboarding.persistence import JsonFileStore, SessionSeed

    store = JsonFileStore("data/session_store.json")
    store.set_json("surveyAnswers", {"1": "Acme", "6": ["meta", "google"]})
    seed = SessionSeed.from_store(store)
    seed.organization   # 'Acme'
    seed.channels       # ('meta', 'google')

Keys:
    surveyAnswers   survey answers keyed by question id (written by the survey)
    termsAgreement  {"agreedAt": iso, "marketingConsent": bool, "newsletterConsent": bool}

The flow controller only reads the seed, once, when a session starts; it
never writes to the store.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from onboarding import PROJECT_ROOT
from onboarding.protocol.vocabulary import CHANNEL_LABELS

logger = logging.getLogger(__name__)

SURVEY_ANSWERS_KEY = "surveyAnswers"
TERMS_AGREEMENT_KEY = "termsAgreement"

# Survey question ids the session cares about
ORGANIZATION_QUESTION = "1"
AD_CHANNELS_QUESTION = "6"


class KeyValueStore(ABC):
    """String values under string keys; JSON helpers on top."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring malformed JSON under '{key}': {e}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))


class InMemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """All keys in one JSON object on disk, rewritten on every set."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read session store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)


def open_store(path: str | Path) -> JsonFileStore:
    """File store at ``path``; relative paths are taken from the project root."""
    path = Path(path)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return JsonFileStore(path)


@dataclass(frozen=True)
class SessionSeed:
    """What the setup session takes from earlier screens."""
    organization: str = ""
    channels: tuple[str, ...] = ()
    terms_agreed: bool = False
    marketing_consent: bool = False

    @classmethod
    def from_store(cls, store: KeyValueStore) -> "SessionSeed":
        answers = store.get_json(SURVEY_ANSWERS_KEY, {}) or {}
        terms = store.get_json(TERMS_AGREEMENT_KEY, {}) or {}
        if not isinstance(answers, dict):
            answers = {}
        if not isinstance(terms, dict):
            terms = {}

        organization = answers.get(ORGANIZATION_QUESTION, "")
        channels = answers.get(AD_CHANNELS_QUESTION, [])
        if isinstance(channels, str):
            channels = [channels]
        if not isinstance(channels, list):
            channels = []

        return cls(
            organization=organization.strip() if isinstance(organization, str) else "",
            channels=tuple(c for c in channels if isinstance(c, str) and c in CHANNEL_LABELS),
            terms_agreed=bool(terms.get("agreedAt")),
            marketing_consent=bool(terms.get("marketingConsent", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "organization": self.organization,
            "channels": list(self.channels),
            "terms_agreed": self.terms_agreed,
            "marketing_consent": self.marketing_consent,
        }
