"""In-process settings collaborator."""

import logging
from collections.abc import Iterable
from typing import Callable, Optional

from ..models.config import DEFAULT_BLOCKED_DOMAINS, SettingsConfig

logger = logging.getLogger(__name__)

SettingsListener = Callable[[frozenset[str]], None]


class SettingsStore:
    """
    Holds the blocked-domain list and notifies listeners when it changes.

    Readers get a snapshot; the pipeline never sees a set that can change
    under it.

    Example:
        settings = SettingsStore()
        settings.subscribe(lambda domains: print(sorted(domains)))
        settings.block("tracker.example.net")
    """

    def __init__(self, blocked_domains: Optional[Iterable[str]] = None):
        domains = DEFAULT_BLOCKED_DOMAINS if blocked_domains is None else blocked_domains
        self._blocked: set[str] = {self._clean(d) for d in domains if self._clean(d)}
        self._listeners: list[SettingsListener] = []

    @classmethod
    def from_config(cls, config: SettingsConfig) -> "SettingsStore":
        return cls(config.blocked_domains)

    @staticmethod
    def _clean(domain: str) -> str:
        return domain.strip().lower().strip(".")

    @property
    def blocked_domains(self) -> frozenset[str]:
        return frozenset(self._blocked)

    def set_blocked_domains(self, domains: Iterable[str]) -> None:
        self._blocked = {self._clean(d) for d in domains if self._clean(d)}
        self._notify()

    def block(self, domain: str) -> None:
        domain = self._clean(domain)
        if domain and domain not in self._blocked:
            self._blocked.add(domain)
            self._notify()

    def unblock(self, domain: str) -> None:
        domain = self._clean(domain)
        if domain in self._blocked:
            self._blocked.discard(domain)
            self._notify()

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.blocked_domains
        logger.debug(f"Blocked domains updated: {len(snapshot)} entries")
        for listener in list(self._listeners):
            listener(snapshot)
