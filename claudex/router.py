"""Intent-based routing rules that pick a profile for a request."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RouterConfig:
    """Settings for the intent router: the classifier endpoint and intent rules."""

    enabled: bool = False
    profile: str = ""
    model: str = ""
    rules: dict[str, str] = field(default_factory=dict)

    def resolve_profile(self, intent: str) -> str | None:
        """The profile for ``intent``, falling back to the ``default`` rule."""
        if intent in self.rules:
            return self.rules[intent]
        return self.rules.get("default")