"""
Draft state for the app currently being registered.

The session exists only between "start" (or "add another app") and the
moment the app is committed to the registry; ``reset()`` clears every answer
and hands back a fresh transcript.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from onboarding.protocol.messages import Transcript
from onboarding.registry.apps import AppInfo, PlatformInfo


@dataclass
class SetupSession:
    environment: Optional[str] = None
    platforms: list[str] = field(default_factory=list)
    current_platform_index: int = 0
    platform_infos: list[PlatformInfo] = field(default_factory=list)
    app_info: Optional[AppInfo] = None
    platform_draft: Optional[PlatformInfo] = None
    # True from the first question until the draft is committed or dropped
    in_progress: bool = False
    transcript: Transcript = field(default_factory=Transcript)

    @property
    def current_platform(self) -> Optional[str]:
        if 0 <= self.current_platform_index < len(self.platforms):
            return self.platforms[self.current_platform_index]
        return None

    @property
    def is_empty(self) -> bool:
        return (
            self.environment is None
            and not self.platforms
            and not self.platform_infos
            and self.app_info is None
        )

    def record_platform(self, info: PlatformInfo) -> bool:
        """Store the current platform's identity; True when it was the last one."""
        self.platform_infos.append(info)
        self.current_platform_index += 1
        return self.current_platform_index >= len(self.platforms)

    def draft_app_info(self) -> AppInfo:
        """App info assembled from the platform answers collected so far."""
        if self.app_info is not None:
            return self.app_info
        info = AppInfo(app_name="")
        for p in self.platform_infos:
            info.app_name = info.app_name or p.app_name
            info.bundle_id = info.bundle_id or p.bundle_id
            info.package_name = info.package_name or p.package_name
            info.store_url = info.store_url or p.store_url
            info.web_url = info.web_url or p.web_url
        self.app_info = info
        return info

    def reset(self) -> Transcript:
        """Discard every draft answer; returns the transcript that was in use."""
        transcript = self.transcript
        self.environment = None
        self.platforms = []
        self.current_platform_index = 0
        self.platform_infos = []
        self.app_info = None
        self.platform_draft = None
        self.in_progress = False
        self.transcript = Transcript()
        return transcript

    def to_dict(self) -> dict[str, Any]:
        return {
            "environment": self.environment,
            "platforms": list(self.platforms),
            "current_platform_index": self.current_platform_index,
            "platform_infos": [p.to_dict() for p in self.platform_infos],
            "app_info": self.app_info.to_dict() if self.app_info else None,
            "in_progress": self.in_progress,
            "pending": self.transcript.pending_kind,
        }
