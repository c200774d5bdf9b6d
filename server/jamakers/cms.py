"""
Landing page configuration, kept as one JSON document in private storage.
"""

from __future__ import annotations

import copy
import json
import threading
from pathlib import Path
from typing import Any, Dict

DEFAULT_LANDING_CONFIG: Dict[str, Any] = {
    "header": {"brandName": "JA Makers", "showSignIn": True, "showRegister": True},
    "hero": {
        "enabled": False,
        "title": "Connect with Verified Manufacturers",
        "subtitle": "The premier manufacturing hub in Jamaica",
        "ctaText": "Get Started",
        "ctaLink": "/signup",
    },
    "sections": {
        "loginEnabled": True,
        "featuresEnabled": True,
        "howItWorksEnabled": True,
        "footerEnabled": True,
    },
    "cta": {"joinEnabled": True, "joinLink": "/brands/create"},
    "visibility": "public",
    "owner": "system",
    "allowedUsers": [],
}

# Sections merged key by key; everything else is replaced wholesale.
MERGED_SECTIONS = ("header", "hero", "sections", "cta")


class LandingCms:
    def __init__(self, private_dir: str):
        self.path = Path(private_dir) / "cms" / "landing.json"
        self._lock = threading.Lock()

    def _stored(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        return json.loads(self.path.read_text(encoding="utf-8"))

    def get(self) -> Dict[str, Any]:
        """The stored document layered over the defaults."""
        return {**copy.deepcopy(DEFAULT_LANDING_CONFIG), **self._stored()}

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            existing = self._stored() or copy.deepcopy(DEFAULT_LANDING_CONFIG)
            updated = {**existing, **changes}
            for section in MERGED_SECTIONS:
                updated[section] = {
                    **(existing.get(section) or {}),
                    **(changes.get(section) or {}),
                }
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(updated, indent=2), encoding="utf-8")
            return updated
