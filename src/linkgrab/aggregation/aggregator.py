"""Cross-frame aggregation of link reports under a deadline."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..exceptions import CollectionAborted
from ..models.links import CollectionResult, FrameReport, LinkRecord, dedup_key
from .store import ResultStore

logger = logging.getLogger(__name__)

FinalizeCallback = Callable[[CollectionResult], None]


def dedupe_links(links: Iterable[LinkRecord]) -> list[LinkRecord]:
    """
    Drop links whose dedup key was already seen.

    The first sighting wins and first sightings keep their relative order.
    """
    seen: set[str] = set()
    unique = []
    for link in links:
        key = dedup_key(link.href)
        if key not in seen:
            seen.add(key)
            unique.append(link)
    return unique


@dataclass
class CollectionRequest:
    """
    One in-flight collection for a tab.

    Attributes:
        tab_id: Tab the collection belongs to
        expected_frames: Frames the page had when the collection started
        source_url: Top-level page URL
        tab_index: Position of the tab (used to place a results view)
        received_frames: Frame reports received so far
        links: Reported links, append-only, in arrival order
        deadline: Fire-once timer that finalizes with whatever arrived
        finalized: Set by the first finalize; later attempts are no-ops
        abort_reason: Set when superseded or cancelled
    """

    tab_id: int
    expected_frames: int
    source_url: str
    tab_index: int = 0
    received_frames: int = 0
    links: list[LinkRecord] = field(default_factory=list)
    deadline: Optional[asyncio.TimerHandle] = None
    done: Optional[asyncio.Future] = None
    finalized: bool = False
    abort_reason: Optional[str] = None
    started_at: float = field(default_factory=time.monotonic)

    @property
    def is_complete(self) -> bool:
        return self.received_frames >= self.expected_frames


class FrameAggregator:
    """
    Collects per-frame link reports and finalizes each collection once.

    A collection finalizes when every expected frame has reported or when
    its deadline fires, whichever happens first; the other event is then a
    no-op. Frames that never report only cost completeness. Reports for a
    finished or superseded collection are discarded.

    All methods must be called from the event loop that owns the
    aggregator; the loop serializes frame reports and timer callbacks, so
    each request has a single writer at a time.

    Example:
        aggregator = FrameAggregator(ResultStore(), timeout=3.0)
        aggregator.start(tab_id=7, expected_frames=3, source_url=url)
        aggregator.report_frame(7, top_frame_links)
        result = await aggregator.wait(7)
    """

    def __init__(
        self,
        result_store: Optional[ResultStore] = None,
        timeout: float = 3.0,
        on_finalize: Optional[FinalizeCallback] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            result_store: Where finalized results are published
            timeout: Seconds before a collection finalizes with partial results
            on_finalize: Optional callback invoked with each finalized result
        """
        self.store = result_store if result_store is not None else ResultStore()
        self._timeout = timeout
        self._on_finalize = on_finalize
        self._requests: dict[int, CollectionRequest] = {}

    def start(
        self,
        tab_id: int,
        expected_frames: int,
        source_url: str,
        tab_index: int = 0,
    ) -> CollectionRequest:
        """
        Start a collection for a tab, superseding any pending one.

        Args:
            tab_id: Tab identifier
            expected_frames: Number of frames expected to report (minimum 1)
            source_url: Top-level page URL
            tab_index: Tab position

        Returns:
            The new request
        """
        loop = asyncio.get_running_loop()

        if self._abort(tab_id, "superseded"):
            logger.info(f"Superseded pending collection for tab {tab_id}")

        request = CollectionRequest(
            tab_id=tab_id,
            expected_frames=max(expected_frames, 1),
            source_url=source_url,
            tab_index=tab_index,
        )
        request.done = loop.create_future()
        request.deadline = loop.call_later(self._timeout, self._on_deadline, request)
        self._requests[tab_id] = request

        logger.debug(f"Collection started for tab {tab_id}: {request.expected_frames} frames expected")
        return request

    def report_frame(
        self,
        tab_id: int,
        links: Iterable[LinkRecord],
        request: Optional[CollectionRequest] = None,
    ) -> bool:
        """
        Add one frame's links to the pending collection.

        Args:
            tab_id: Tab the frame belongs to
            links: Links extracted from the frame
            request: The collection the frame was loaded for; a report bound
                to an older request is discarded

        Returns:
            True if the report was accepted, False if it was discarded
            because no collection is pending for the tab
        """
        pending = self._requests.get(tab_id)
        if pending is None or pending.finalized or (request is not None and request is not pending):
            logger.debug(f"Discarding late frame report for tab {tab_id}")
            return False
        request = pending

        request.links.extend(links)
        request.received_frames += 1

        if request.is_complete:
            self.finalize(tab_id)
        return True

    def submit(self, report: FrameReport, request: Optional[CollectionRequest] = None) -> bool:
        """Apply a frame report; see ``report_frame``."""
        return self.report_frame(report.tab_id, report.links, request=request)

    def finalize(self, tab_id: int, *, timed_out: bool = False) -> Optional[CollectionResult]:
        """
        Finalize the pending collection for a tab.

        Deduplicates the accumulated links across frames, publishes the
        result to the store and discards the request.

        Returns:
            The result, or None if there was nothing to finalize
        """
        request = self._requests.get(tab_id)
        if request is None or request.finalized:
            return None

        request.finalized = True
        if request.deadline is not None:
            request.deadline.cancel()
        del self._requests[tab_id]

        links = dedupe_links(request.links)
        result = CollectionResult(
            tab_id=tab_id,
            source_url=request.source_url,
            links=links,
            frames_expected=request.expected_frames,
            frames_received=request.received_frames,
            links_reported=len(request.links),
            timed_out=timed_out,
        )
        self.store.put(result)

        if request.done is not None and not request.done.done():
            request.done.set_result(result)

        elapsed = time.monotonic() - request.started_at
        if timed_out:
            logger.info(
                f"Collection for tab {tab_id} finalized at deadline with "
                f"{request.received_frames}/{request.expected_frames} frames, {len(links)} links"
            )
        else:
            logger.info(f"Collection for tab {tab_id} finalized in {elapsed:.2f}s with {len(links)} links")

        if self._on_finalize:
            self._on_finalize(result)
        return result

    def cancel(self, tab_id: int, reason: str = "cancelled") -> bool:
        """
        Abort the pending collection for a tab without publishing anything.

        Returns:
            True if a pending collection was aborted
        """
        return self._abort(tab_id, reason)

    def tab_closed(self, tab_id: int) -> None:
        """Abort any pending collection and forget the tab's stored result."""
        self._abort(tab_id, "tab closed")
        self.store.remove(tab_id)

    async def wait(self, tab_id: int) -> CollectionResult:
        """
        Wait for the pending collection of a tab to finalize.

        Raises:
            KeyError: If no collection is pending for the tab
            CollectionAborted: If the collection was superseded or cancelled
        """
        request = self._requests.get(tab_id)
        if request is None or request.done is None:
            raise KeyError(f"No pending collection for tab {tab_id}")

        try:
            return await asyncio.shield(request.done)
        except asyncio.CancelledError:
            if request.abort_reason is not None:
                raise CollectionAborted(tab_id, request.abort_reason) from None
            raise

    def pending(self, tab_id: int) -> bool:
        return tab_id in self._requests

    def get_request(self, tab_id: int) -> Optional[CollectionRequest]:
        return self._requests.get(tab_id)

    def _on_deadline(self, request: CollectionRequest) -> None:
        # A timer belongs to one request; a newer request for the same tab is left alone
        if self._requests.get(request.tab_id) is not request:
            return
        self.finalize(request.tab_id, timed_out=True)

    def _abort(self, tab_id: int, reason: str) -> bool:
        request = self._requests.pop(tab_id, None)
        if request is None:
            return False

        request.finalized = True
        request.abort_reason = reason
        if request.deadline is not None:
            request.deadline.cancel()
        request.links.clear()
        if request.done is not None and not request.done.done():
            request.done.cancel()

        logger.debug(f"Collection for tab {tab_id} aborted: {reason}")
        return True

    def __len__(self) -> int:
        return len(self._requests)
