"""
App registry - every App constructed against a coordinator, in order.

Apps live for the lifetime of their coordinator, so the registry is
append-only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, List, Optional

if TYPE_CHECKING:
    from .app import App


class AppRegistry:
    """Append-only ordered collection of apps."""

    def __init__(self):
        self._apps: List["App"] = []

    def add(self, app: "App") -> None:
        self._apps.append(app)

    def run_checks(self) -> None:
        """Ask every app to re-evaluate its gating check."""
        # Apps created by a check (inside a start callback) get their own
        # check at construction, so iterate over a snapshot.
        for app in list(self._apps):
            app._check()

    def get(self, name: str) -> Optional["App"]:
        """First app registered under a name, if any."""
        return next((app for app in self._apps if app.name == name), None)

    @property
    def initialized(self) -> List["App"]:
        return [app for app in self._apps if app.has_initialized]

    @property
    def unloaded(self) -> List["App"]:
        return [app for app in self._apps if app.has_unloaded]

    def __iter__(self) -> Iterator["App"]:
        return iter(list(self._apps))

    def __len__(self) -> int:
        return len(self._apps)

    def __contains__(self, app: object) -> bool:
        return app in self._apps

    def __repr__(self) -> str:
        return f"<AppRegistry apps={len(self._apps)}>"
