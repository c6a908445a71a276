"""Branding strings shown on the admin screens.

Values are plain configuration.  Deployments that need to re-brand the panel
register override hooks on the application's :class:`Branding` instance
instead of patching module state.
"""

from __future__ import annotations

from typing import Callable, Mapping

BrandingHook = Callable[[str], str]

DEFAULT_BRANDING: dict[str, str] = {
    "name": "InfoCard",
    "title": "InfoCard",
    "description": (
        "InfoCard displays plugin and theme data in a compact card with a "
        "smooth rotation effect. Dashboard widget included."
    ),
    "author": "Brice Capobianco and Ronald Huereca",
    "author_uri": "https://mediaron.com",
    "uri": "https://mediaron.com/wp-plugin-info-card/",
    "support_uri": "https://mediaron.com/contact/",
    "docs_uri": "https://mediaron.com/wp-plugin-info-card/",
    "ratings_uri": "https://wordpress.org/support/plugin/wp-plugin-info-card/reviews/",
}


class Branding:
    """Lookup of branding values with per-key override hooks."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = dict(DEFAULT_BRANDING)
        if values:
            self._values.update(values)
        self._hooks: dict[str, list[BrandingHook]] = {}

    def register_override(self, key: str, hook: BrandingHook) -> None:
        """Run ``hook`` on ``key``'s value each time it is read.

        Hooks run in registration order, each receiving the previous result.
        """
        if key not in self._values:
            raise KeyError(key)
        self._hooks.setdefault(key, []).append(hook)

    def get(self, key: str) -> str:
        if key not in self._values:
            raise KeyError(key)
        value = self._values[key]
        for hook in self._hooks.get(key, []):
            value = hook(value)
        return value

    def as_dict(self) -> dict[str, str]:
        return {key: self.get(key) for key in self._values}


__all__ = ["Branding", "BrandingHook", "DEFAULT_BRANDING"]
