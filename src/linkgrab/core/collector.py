"""Page collection driver with an event callback API."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Callable, Optional

from ..aggregation import CollectionRequest, FrameAggregator, ResultStore
from ..classify import ClassificationResult, classify
from ..discovery import HttpFrameSource, NoiseFilter, StaticFrameExtractor
from ..discovery.link_extractors import PLAYWRIGHT_AVAILABLE, BrowserFrameSource, FrameLoader
from ..discovery.link_extractors.protocols import FrameExtractor, FrameSource
from ..exceptions import BrowserUnavailableError, CollectionAborted
from ..http import AsyncHttpClient, HttpClient
from ..models.config import ClassifyOptions, LinkGrabConfig
from ..models.events import CollectionEvent, CollectionStats, EventType
from ..models.links import CollectionResult, FrameReport
from ..settings import SettingsStore

logger = logging.getLogger(__name__)

EventCallback = Callable[[CollectionEvent], None]


@dataclass(frozen=True)
class TabInfo:
    """The tab a collection is triggered for."""

    tab_id: int
    url: str
    index: int = 0


class LinkCollector:
    """
    Collect the links of a page across all of its frames.

    Each frame is loaded and extracted by its own task and reports to the
    aggregator exactly once. A frame that fails to load or extract never
    reports, and the aggregator's deadline finalizes the collection with
    whatever arrived.

    Example:
        config = LinkGrabConfig(aggregation=AggregationConfig(frame_timeout=5.0))

        async with LinkCollector(config, emit=print) as collector:
            result = await collector.collect("https://example.com")
            groups = collector.classify(result.tab_id)

        print(collector.stats.to_dict())
    """

    def __init__(
        self,
        config: Optional[LinkGrabConfig] = None,
        emit: Optional[EventCallback] = None,
        http_client: Optional[HttpClient] = None,
        frame_source: Optional[FrameSource] = None,
        extractor: Optional[FrameExtractor] = None,
        settings: Optional[SettingsStore] = None,
        result_store: Optional[ResultStore] = None,
    ):
        """
        Initialize the collector.

        Args:
            config: Collection configuration (defaults apply when omitted)
            emit: Callback receiving every CollectionEvent
            http_client: HTTP client to use instead of an owned AsyncHttpClient
            frame_source: Frame source to use instead of the configured one
            extractor: Per-frame extractor to use instead of StaticFrameExtractor
            settings: Settings store holding the blocked-domain list
            result_store: Where finalized results are published
        """
        self.config = config or LinkGrabConfig()
        self._emit_callback = emit
        self._stats = CollectionStats()

        self.settings = settings if settings is not None else SettingsStore.from_config(self.config.settings)
        self.aggregator = FrameAggregator(
            result_store=result_store,
            timeout=self.config.aggregation.frame_timeout,
        )
        self.noise_filter = NoiseFilter(
            extra_prefixes=self.config.extraction.extra_noise_prefixes,
            extra_patterns=self.config.extraction.extra_noise_patterns,
        )

        self._http_client = http_client
        self._frame_source = frame_source
        self._extractor = extractor

        # Components created in __aenter__ are closed in __aexit__
        self._owned_client: Optional[AsyncHttpClient] = None
        self._owned_browser: Optional[BrowserFrameSource] = None

        self._tasks: dict[int, asyncio.Task] = {}
        self._next_tab_id = 1

    @property
    def stats(self) -> CollectionStats:
        """Statistics of the most recent finished collection."""
        return self._stats

    @property
    def results(self) -> ResultStore:
        return self.aggregator.store

    def _emit(self, event_type: EventType, **kwargs) -> None:
        if self._emit_callback is not None:
            self._emit_callback(CollectionEvent(type=event_type, **kwargs))

    async def __aenter__(self) -> LinkCollector:
        """Enter async context and initialize components."""
        network = self.config.network
        extraction = self.config.extraction

        if self._http_client is None:
            self._owned_client = AsyncHttpClient(
                max_retries=network.max_retries,
                user_agent=network.user_agent,
                proxy=network.proxy,
                default_timeout=float(network.read_timeout),
            )
            await self._owned_client.__aenter__()
            self._http_client = self._owned_client

        if self._extractor is None:
            self._extractor = StaticFrameExtractor(
                http_client=self._http_client,
                noise_filter=self.noise_filter,
                script_timeout=extraction.script_timeout,
                max_script_fetches=extraction.max_script_fetches,
                max_concurrent_fetches=extraction.max_concurrent_fetches,
                fetch_external_scripts=extraction.fetch_external_scripts,
            )

        if self._frame_source is None:
            if self.config.browser:
                if not PLAYWRIGHT_AVAILABLE:
                    await self._close_owned(None, None, None)
                    raise BrowserUnavailableError()
                self._owned_browser = BrowserFrameSource(
                    user_agent=network.user_agent,
                    timeout=float(network.read_timeout),
                    max_frames=extraction.max_frames if extraction.include_frames else 1,
                )
                await self._owned_browser.__aenter__()
                self._frame_source = self._owned_browser
            else:
                self._frame_source = HttpFrameSource(
                    self._http_client,
                    include_frames=extraction.include_frames,
                    max_frames=extraction.max_frames,
                    frame_timeout=self.config.aggregation.frame_timeout,
                )

        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Cancel running collections and close owned resources."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

        await self._close_owned(exc_type, exc_val, exc_tb)

    async def _close_owned(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._owned_browser:
            await self._owned_browser.__aexit__(exc_type, exc_val, exc_tb)
            self._owned_browser = None
            self._frame_source = None

        if self._owned_client:
            await self._owned_client.__aexit__(exc_type, exc_val, exc_tb)
            self._owned_client = None
            self._http_client = None

    def _allocate_tab_id(self) -> int:
        while self._next_tab_id in self._tasks or self.aggregator.pending(self._next_tab_id):
            self._next_tab_id += 1
        tab_id = self._next_tab_id
        self._next_tab_id += 1
        return tab_id

    async def collect(
        self,
        url: str,
        tab_id: Optional[int] = None,
        tab_index: int = 0,
    ) -> CollectionResult:
        """
        Collect the links of one page.

        Args:
            url: Page URL
            tab_id: Tab the collection belongs to (allocated when omitted)
            tab_index: Tab position

        Returns:
            The finalized result, also published to the result store

        Raises:
            PageFetchError: If the top-level page cannot be loaded
            CollectionAborted: If a newer collection for the tab superseded
                this one, or the tab was closed
        """
        if self._frame_source is None or self._extractor is None:
            raise RuntimeError("LinkCollector not initialized. Use 'async with' context manager.")

        if tab_id is None:
            tab_id = self._allocate_tab_id()

        started = time.monotonic()
        request: Optional[CollectionRequest] = None
        self._emit(EventType.STARTED, tab_id=tab_id, url=url, message=f"Collecting links from {url}")

        try:
            async with self._frame_source.open(url) as page:
                request = self.aggregator.start(tab_id, page.frame_count, page.url, tab_index=tab_index)
                self._emit(
                    EventType.FRAMES_DISCOVERED,
                    tab_id=tab_id,
                    url=page.url,
                    total=request.expected_frames,
                )

                tasks = [
                    asyncio.create_task(self._run_frame(request, number, loader))
                    for number, loader in enumerate(page.loaders, start=1)
                ]
                try:
                    result = await self.aggregator.wait(tab_id)
                finally:
                    for task in tasks:
                        if not task.done():
                            task.cancel()
                    await asyncio.gather(*tasks, return_exceptions=True)
        except CollectionAborted as e:
            self._emit(EventType.COLLECTION_SUPERSEDED, tab_id=tab_id, url=url, message=e.reason)
            raise
        except asyncio.CancelledError:
            self._drop_request(request)
            raise
        except Exception as e:
            self._drop_request(request)
            self._emit(EventType.FAILED, tab_id=tab_id, url=url, error=str(e))
            raise

        self._stats = CollectionStats(
            frames_expected=result.frames_expected,
            frames_received=result.frames_received,
            links_reported=result.links_reported,
            links_unique=len(result.links),
            duration_seconds=time.monotonic() - started,
            timed_out=result.timed_out,
        )

        finalized_type = EventType.COLLECTION_TIMED_OUT if result.timed_out else EventType.COLLECTION_FINALIZED
        self._emit(
            finalized_type,
            tab_id=tab_id,
            url=result.source_url,
            current=result.frames_received,
            total=result.frames_expected,
            link_count=len(result.links),
        )
        self._emit(
            EventType.COMPLETED,
            tab_id=tab_id,
            url=result.source_url,
            link_count=len(result.links),
            message=f"Collected {len(result.links)} links in {self._stats.duration_seconds:.1f}s",
        )
        return result

    def _drop_request(self, request: Optional[CollectionRequest]) -> None:
        if request is not None and self.aggregator.get_request(request.tab_id) is request:
            self.aggregator.cancel(request.tab_id)

    async def _run_frame(self, request: CollectionRequest, number: int, loader: FrameLoader) -> None:
        if self._extractor is None:
            raise RuntimeError("LinkCollector not initialized. Use 'async with' context manager.")
        try:
            document = await loader()
            links = await self._extractor.extract_frame(document)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Frame {number} of tab {request.tab_id} failed: {e}")
            self._emit(
                EventType.FRAME_FAILED,
                tab_id=request.tab_id,
                url=getattr(e, "url", None),
                error=str(e),
                current=number,
                total=request.expected_frames,
            )
            return

        report = FrameReport(tab_id=request.tab_id, frame_url=document.url, links=links)
        if self.aggregator.submit(report, request=request):
            self._emit(
                EventType.FRAME_REPORTED,
                tab_id=request.tab_id,
                url=document.url,
                current=request.received_frames,
                total=request.expected_frames,
                link_count=len(links),
            )

    def trigger(self, tab: TabInfo) -> asyncio.Task:
        """
        Start a collection for a tab in the background.

        A collection still running for the same tab is superseded first.

        Returns:
            The task running the collection; its result is the
            CollectionResult
        """
        previous = self._tasks.get(tab.tab_id)
        if previous is not None and not previous.done():
            if not self.aggregator.cancel(tab.tab_id, reason="superseded"):
                # Still loading the page, no request exists yet
                previous.cancel()
            logger.info(f"Superseding collection for tab {tab.tab_id}")

        task = asyncio.create_task(self.collect(tab.url, tab_id=tab.tab_id, tab_index=tab.index))
        self._tasks[tab.tab_id] = task
        task.add_done_callback(lambda done: self._forget_task(tab.tab_id, done))
        return task

    def _forget_task(self, tab_id: int, task: asyncio.Task) -> None:
        if self._tasks.get(tab_id) is task:
            del self._tasks[tab_id]
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Background collection for tab {tab_id} ended: {task.exception()}")

    def tab_closed(self, tab_id: int) -> None:
        """Abort the tab's collection and drop its stored result."""
        task = self._tasks.get(tab_id)
        if not self.aggregator.pending(tab_id) and task is not None and not task.done():
            task.cancel()
        self.aggregator.tab_closed(tab_id)

    def classify(self, tab_id: int, options: Optional[ClassifyOptions] = None) -> Optional[ClassificationResult]:
        """
        Classify the stored result of a tab.

        Returns:
            The classification, or None when the tab has no stored result
        """
        result = self.results.get(tab_id)
        if result is None:
            return None
        return classify(
            result.links,
            result.source_url,
            self.settings.blocked_domains,
            options or self.config.display,
        )


def collect_blocking(
    url: str,
    on_event: Optional[EventCallback] = None,
    config: Optional[LinkGrabConfig] = None,
) -> CollectionResult:
    """
    Blocking collection with optional event callback.

    Do not call from within a running event loop; use LinkCollector there.

    Example:
        result = collect_blocking("https://example.com")
        for link in result.links:
            print(link.href)
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError("collect_blocking() called from async context. Use 'async with LinkCollector()' instead.")

    async def _run() -> CollectionResult:
        async with LinkCollector(config, emit=on_event) as collector:
            return await collector.collect(url)

    return asyncio.run(_run())
