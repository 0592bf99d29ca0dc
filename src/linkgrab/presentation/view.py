"""View model over one finalized collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..classify import ClassificationResult, ClassifiedLink, classify
from ..models.config import ClassifyOptions
from ..models.links import CollectionResult
from ..settings import SettingsStore

logger = logging.getLogger(__name__)

TOGGLES = ("hide_duplicates", "hide_blocked_domains", "hide_same_origin", "group_by_domain")

SECTION_TITLES = {
    "anchors": "HTML Links",
    "images": "Images",
    "scripts": "Embedded Links",
}


@dataclass(frozen=True)
class LinkSection:
    """One display column: a titled group of visible links."""

    key: str
    title: str
    links: tuple[ClassifiedLink, ...]

    def __len__(self) -> int:
        return len(self.links)


class LinkListView:
    """
    Display state for the links of one collection.

    Every option change or blocked-domain change reruns the classification
    pipeline over the stored result; nothing is collected again. A view
    created without a result is expired.

    Example:
        view = LinkListView(store.get(tab_id), settings)
        view.toggle("hide_duplicates")
        view.set_filter("github")
        shown, total = view.counter
    """

    def __init__(
        self,
        result: Optional[CollectionResult],
        settings: Optional[SettingsStore] = None,
        options: Optional[ClassifyOptions] = None,
    ):
        self.result = result
        self.settings = settings if settings is not None else SettingsStore()
        self.options = options.model_copy() if options is not None else ClassifyOptions()
        self._classification: Optional[ClassificationResult] = None
        self._unsubscribe = self.settings.subscribe(self._on_settings_changed)
        self.refresh()

    @property
    def expired(self) -> bool:
        return self.result is None

    @property
    def source(self) -> str:
        return self.result.source_url if self.result is not None else ""

    @property
    def classification(self) -> Optional[ClassificationResult]:
        return self._classification

    @property
    def is_empty(self) -> bool:
        """True when the collection found no links at all."""
        return self._classification is not None and self._classification.is_empty

    @property
    def counter(self) -> tuple[int, int]:
        """Visible links and total collected links."""
        if self._classification is None:
            return (0, 0)
        return (len(self._classification.items), self._classification.total)

    @property
    def sections(self) -> list[LinkSection]:
        """
        Display columns for the current classification.

        Without script-derived links the view shows anchors and images;
        without anchors it shows scripts and images; otherwise all three.
        """
        groups = self._classification
        if groups is None:
            return []

        if not groups.scripts:
            keys = ("anchors", "images")
        elif not groups.anchors:
            keys = ("scripts", "images")
        else:
            keys = ("anchors", "images", "scripts")
        return [LinkSection(key, SECTION_TITLES[key], getattr(groups, key)) for key in keys]

    def refresh(self) -> Optional[ClassificationResult]:
        """Rerun classification with the current options and blocked domains."""
        if self.result is None:
            self._classification = None
            return None

        self._classification = classify(
            self.result.links,
            self.result.source_url,
            self.settings.blocked_domains,
            self.options,
        )
        return self._classification

    def toggle(self, name: str) -> bool:
        """
        Flip one boolean display option.

        Returns:
            The option's new value

        Raises:
            ValueError: If ``name`` is not a toggleable option
        """
        if name not in TOGGLES:
            raise ValueError(f"Unknown option {name!r}; expected one of {', '.join(TOGGLES)}")

        value = not getattr(self.options, name)
        self.options = self.options.model_copy(update={name: value})
        self.refresh()
        return value

    def set_filter(self, text: str) -> None:
        self.options = self.options.model_copy(update={"filter_text": text})
        self.refresh()

    def close(self) -> None:
        """Stop following settings changes."""
        self._unsubscribe()

    def _on_settings_changed(self, blocked_domains: frozenset[str]) -> None:
        logger.debug(f"Reclassifying after settings change ({len(blocked_domains)} blocked domains)")
        self.refresh()
