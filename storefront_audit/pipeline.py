"""Audit pipeline: collection, measurement, classification, grading, scoring, reporting."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

from storefront_audit.analysis.dom_heuristics import analyze_html
from storefront_audit.categorization.classifier import PlatformClassifier, extract_resource_urls
from storefront_audit.categorization.signals import load_signals
from storefront_audit.consts import (
    MOBILE_VIEWPORT_WIDTH,
    PROGRESS_COLLECTED,
    PROGRESS_DONE,
    PROGRESS_EVIDENCE,
    PROGRESS_GRADED,
    PROGRESS_GRADING,
    PROGRESS_MEASURED,
    PROGRESS_PLATFORM_HINT,
    PROGRESS_REPORTING,
    PROGRESS_SCORED,
    PROGRESS_SCORING,
    PROGRESS_START,
    PROGRESS_TIMEOUT,
    REGION_CAPTURE_TIMEOUT,
    REGION_PADDING_PX,
    STAGE_TIMEOUT_MARGIN,
)
from storefront_audit.errors import CollectionError
from storefront_audit.evaluators.composite import grade_for_score
from storefront_audit.evaluators.engine import ScoringEngine
from storefront_audit.evaluators.measurements import inject_measurements
from storefront_audit.evaluators.rules_config import load_rule_config
from storefront_audit.grading.base import Grader, GraderScreenshots
from storefront_audit.grading.mock_grader import MockGrader
from storefront_audit.grading.vision_grader import VisionGrader
from storefront_audit.models.model_audit import AuditResult, AuditRun
from storefront_audit.models.model_category import ALL_CATEGORIES
from storefront_audit.models.model_collect import CollectedPage
from storefront_audit.models.model_evidence import LocatedElement
from storefront_audit.models.model_grading import GradeOutput
from storefront_audit.models.model_measure import DomHeuristics, MeasuredData, PerformanceMetrics
from storefront_audit.models.model_platform import Platform, PlatformDetectionResult
from storefront_audit.models.model_scoring import ScoreRuleConfig
from storefront_audit.reporting.report import ReportExporter
from storefront_audit.scanner.lighthouse import LighthouseRunner, extract_metrics
from storefront_audit.scrapers.basic_fetch import BasicFetcher
from storefront_audit.scrapers.firecrawl import FirecrawlScraper
from storefront_audit.scrapers.screenshot import PlaywrightScreenshotter, to_data_uri
from storefront_audit.settings import AuditSettings
from storefront_audit.storage.artifact_store import LocalArtifactStore
from storefront_audit.storage.base import RunStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


@dataclass
class CollectionAttempt:
    """One entry of the collection fallback table."""

    name: str
    collect: Callable[[str, Platform], Awaitable[CollectedPage | None]]
    timeout: float


@dataclass
class _RunState:
    """Per-run bookkeeping; never shared between runs."""

    run_id: str
    last_progress: int = 0
    degraded: list[str] = field(default_factory=list)
    progress_queue: asyncio.Queue | None = None
    progress_writer: asyncio.Task | None = None


def _merge_page(page: CollectedPage, contribution: CollectedPage, source: str) -> None:
    """Fill gaps in the collected page, keeping data that earlier attempts found."""
    if not page.html and contribution.html:
        page.html = contribution.html
    if not page.screenshot and contribution.screenshot:
        page.screenshot = contribution.screenshot
        page.screenshot_path = contribution.screenshot_path
    for link in contribution.links:
        if link not in page.links:
            page.links.append(link)
    page.action_screenshots.extend(contribution.action_screenshots)
    for name, value in contribution.headers.items():
        page.headers.setdefault(name, value)
    for cookie in contribution.cookies:
        if cookie not in page.cookies:
            page.cookies.append(cookie)
    page.sources.append(source)


class AuditOrchestrator:
    """Runs one storefront audit end to end.

    Every collaborator is injected. A missing optional collaborator skips its
    stage (no scraper: screenshot and fetch only; no grader: mock grades).
    The orchestrator never changes run status; it returns a result or raises.
    """

    def __init__(
        self,
        settings: AuditSettings,
        fetcher: BasicFetcher,
        classifier: PlatformClassifier | None = None,
        engine: ScoringEngine | None = None,
        scraper: FirecrawlScraper | None = None,
        screenshotter: PlaywrightScreenshotter | None = None,
        performance: LighthouseRunner | None = None,
        grader: Grader | None = None,
        fallback_grader: Grader | None = None,
        exporter: ReportExporter | None = None,
        run_store: RunStore | None = None,
        rule_config: ScoreRuleConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        """Initialize AuditOrchestrator.

        Args:
            settings: Timeouts and feature flags
            fetcher: Plain HTTP fallback collector (always available)
            classifier: Platform classifier (default signal table if None)
            engine: Hybrid scoring engine (default strategy table if None)
            scraper: Hosted scrape collaborator
            screenshotter: Headless-browser screenshot collaborator
            performance: Performance-audit collaborator
            grader: Vision grader; the fallback grader is used if None
            fallback_grader: Grader used when the vision grader fails (mock if None)
            exporter: Report export collaborator
            run_store: Receives progress updates
            rule_config: Scoring damping, caps and messages
            progress_callback: Optional callback(percent, message) for CLI updates
        """
        self.settings = settings
        self.fetcher = fetcher
        self.classifier = classifier or PlatformClassifier()
        self.engine = engine or ScoringEngine()
        self.scraper = scraper
        self.screenshotter = screenshotter
        self.performance = performance
        self.grader = grader
        self.fallback_grader = fallback_grader or MockGrader()
        self.exporter = exporter
        self.run_store = run_store
        self.rule_config = rule_config or ScoreRuleConfig()
        self.progress_callback = progress_callback

    async def aclose(self) -> None:
        """Release HTTP clients held by collaborators."""
        if self.scraper is not None:
            await self.scraper.close()

    # === PROGRESS ===

    async def _report_progress(self, state: _RunState, percent: int, message: str) -> None:
        """Report a milestone. Never raises and never moves backwards.

        Store writes are queued for the run's progress writer so a slow store
        never delays the pipeline.
        """
        if percent <= state.last_progress:
            return
        state.last_progress = percent
        logger.info(f"[{state.run_id}] {percent}% {message}")

        if self.progress_callback:
            try:
                self.progress_callback(percent, message)
            except Exception as e:
                logger.warning(f"Progress callback failed at {percent}%: {e}")

        if state.progress_queue is not None:
            state.progress_queue.put_nowait((percent, message))

    async def _write_progress(self, run_id: str, queue: asyncio.Queue) -> None:
        """Persist queued milestones in order until the None sentinel arrives."""
        while True:
            item = await queue.get()
            if item is None:
                return
            percent, message = item
            try:
                await asyncio.wait_for(
                    asyncio.to_thread(self.run_store.persist_progress, run_id, percent, message),
                    timeout=PROGRESS_TIMEOUT,
                )
            except Exception as e:
                logger.warning(f"Failed to persist progress {percent}% for run {run_id}: {e}")

    def _start_progress_writer(self, state: _RunState) -> None:
        if self.run_store is None:
            return
        state.progress_queue = asyncio.Queue()
        state.progress_writer = asyncio.create_task(self._write_progress(state.run_id, state.progress_queue))

    async def _flush_progress(self, state: _RunState) -> None:
        """Wait a bounded time for pending progress writes, then drop the rest."""
        if state.progress_writer is None:
            return
        state.progress_queue.put_nowait(None)
        try:
            await asyncio.wait_for(state.progress_writer, timeout=PROGRESS_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"Progress writes for run {state.run_id} still pending, dropping them")
        except Exception as e:
            logger.warning(f"Progress writer for run {state.run_id} failed: {e}")

    # === COLLECTION ===

    async def _collect_scrape(self, url: str, platform_hint: Platform) -> CollectedPage | None:
        result = await self.scraper.scrape(url, platform_hint)
        if not result.success:
            logger.warning(f"Scrape failed for {url}: {result.error}")
            return None
        return CollectedPage(
            url=url,
            html=result.html,
            screenshot=result.screenshot,
            links=list(result.links),
            action_screenshots=list(result.action_screenshots),
        )

    async def _collect_screenshot(self, url: str, platform_hint: Platform) -> CollectedPage | None:
        result = await self.screenshotter.capture_screenshot(url)
        if not result.success or not result.image:
            logger.warning(f"Screenshot capture failed for {url}: {result.error}")
            return None
        return CollectedPage(
            url=url,
            html=result.html,
            screenshot=to_data_uri(result.image),
            screenshot_path=result.local_reference,
        )

    async def _collect_fetch(self, url: str, platform_hint: Platform) -> CollectedPage | None:
        result = await self.fetcher.fetch(url)
        if not result.success:
            logger.warning(f"Basic fetch failed for {url}: {result.error}")
            return None
        return CollectedPage(
            url=url,
            html=result.html,
            links=list(result.links),
            headers=dict(result.headers),
            cookies=list(result.cookies),
        )

    def collection_attempts(self) -> list[CollectionAttempt]:
        """Ordered collection strategies, best fidelity first."""
        attempts: list[CollectionAttempt] = []
        if self.scraper is not None:
            attempts.append(
                CollectionAttempt("scrape", self._collect_scrape, self.settings.scrape_timeout * 2)
            )
        if self.screenshotter is not None:
            attempts.append(
                CollectionAttempt(
                    "screenshot",
                    self._collect_screenshot,
                    self.settings.screenshot_timeout * self.screenshotter.max_retries,
                )
            )
        attempts.append(CollectionAttempt("fetch", self._collect_fetch, self.settings.fetch_timeout))
        return attempts

    async def collect(self, url: str, platform_hint: Platform = Platform.UNKNOWN) -> CollectedPage:
        """Run the collection attempts until HTML and a screenshot are both present.

        Later attempts only fill what earlier ones could not collect.

        Raises:
            CollectionError: If no attempt produced HTML or a screenshot
        """
        page = CollectedPage(url=url)
        errors: list[str] = []

        for attempt in self.collection_attempts():
            if page.is_full_fidelity:
                break
            try:
                contribution = await asyncio.wait_for(
                    attempt.collect(url, platform_hint),
                    timeout=attempt.timeout + STAGE_TIMEOUT_MARGIN,
                )
            except asyncio.TimeoutError:
                logger.warning(f"Collection attempt '{attempt.name}' timed out for {url}")
                errors.append(f"{attempt.name}: timeout")
                continue
            except Exception as e:
                logger.warning(f"Collection attempt '{attempt.name}' raised for {url}: {e}")
                errors.append(f"{attempt.name}: {e}")
                continue

            if contribution is None or not contribution.is_usable:
                errors.append(f"{attempt.name}: no data")
                continue
            _merge_page(page, contribution, attempt.name)
            logger.info(
                f"Collected via {attempt.name}: html={contribution.has_html} "
                f"screenshot={contribution.has_screenshot}"
            )

        if not page.is_usable:
            raise CollectionError(f"Could not collect {url} ({'; '.join(errors) or 'no collectors'})")
        return page

    # === MEASUREMENT ===

    async def _measure_performance(self, url: str) -> tuple[PerformanceMetrics, bool]:
        if self.performance is None:
            return PerformanceMetrics.unavailable(), False
        try:
            result = await asyncio.wait_for(
                self.performance.run_performance_audit(url, "mobile"),
                timeout=self.settings.lighthouse_timeout + STAGE_TIMEOUT_MARGIN,
            )
        except asyncio.TimeoutError:
            result = None
            error = "timeout"
        except Exception as e:
            result = None
            error = str(e)
        else:
            error = result.error

        if result is None or not result.success or not result.raw_report:
            logger.warning(f"Performance audit unavailable for {url}: {error}")
            return PerformanceMetrics.unavailable(), True
        return extract_metrics(result.raw_report), False

    async def _analyze_dom(self, html: str | None) -> tuple[DomHeuristics | None, bool]:
        if not html:
            logger.info("No HTML collected, skipping DOM heuristics")
            return None, False
        try:
            return await asyncio.to_thread(analyze_html, html), False
        except Exception as e:
            logger.warning(f"DOM heuristics failed: {e}")
            return None, True

    async def measure(self, url: str, html: str | None, state: _RunState) -> MeasuredData:
        """Run the performance audit and DOM heuristics concurrently.

        Each branch reports its own failure; degraded stages are recorded
        after both finish, in a fixed order.
        """
        (performance, performance_failed), (dom, dom_failed) = await asyncio.gather(
            self._measure_performance(url),
            self._analyze_dom(html),
        )
        if performance_failed:
            state.degraded.append("performance")
        if dom_failed:
            state.degraded.append("dom_heuristics")
        return MeasuredData(performance=performance, dom=dom)

    # === CLASSIFICATION ===

    def classify(self, page: CollectedPage) -> PlatformDetectionResult:
        """Classify the collected page by URL, markup, resources, headers and cookies."""
        resources = extract_resource_urls(page.html, page.links)
        return self.classifier.classify(
            page.url,
            html=page.html,
            resource_urls=resources,
            headers=page.headers,
            cookies=page.cookies,
        )

    # === GRADING ===

    async def grade(
        self,
        url: str,
        platform: Platform,
        page: CollectedPage,
        state: _RunState,
    ) -> tuple[GradeOutput, str]:
        """Grade with the vision grader, falling back to the deterministic grader.

        Returns:
            Tuple of (grade output, name of the grader that produced it)
        """
        screenshots = GraderScreenshots(first_view=page.screenshot, actions=list(page.action_screenshots))

        if self.grader is not None:
            timeout = (self.settings.grader_timeout + STAGE_TIMEOUT_MARGIN) * self.settings.llm_max_retries
            try:
                output = await asyncio.wait_for(
                    self.grader.grade(url, platform, page.html, screenshots),
                    timeout=timeout,
                )
                if output.category_ids() == set(ALL_CATEGORIES):
                    return output, self.grader.name
                logger.warning(
                    f"Grader '{self.grader.name}' returned {len(output.category_ids())} categories, using fallback"
                )
            except asyncio.TimeoutError:
                logger.warning(f"Grader '{self.grader.name}' timed out, using fallback")
            except Exception as e:
                logger.warning(f"Grader '{self.grader.name}' failed, using fallback: {e}")
            state.degraded.append("grading")
        else:
            logger.info("No grader credentials configured, using fallback grader")

        output = await self.fallback_grader.grade(url, platform, page.html, screenshots)
        return output, self.fallback_grader.name

    async def capture_evidence_regions(self, url: str, output: GradeOutput, state: _RunState) -> int:
        """Attach padded region screenshots to every evidence element with a bbox.

        Returns:
            Number of regions captured
        """
        capture = getattr(self.screenshotter, "capture_regions", None)
        if capture is None:
            return 0

        elements: dict[str, LocatedElement] = {}
        for result in output.categories:
            if result.evidence is None:
                continue
            for index, element in enumerate(result.evidence.located_elements()):
                elements[f"{result.id.value}_{index}"] = element
        if not elements:
            return 0

        regions = {
            name: element.bbox.padded(REGION_PADDING_PX, max_width=MOBILE_VIEWPORT_WIDTH)
            for name, element in elements.items()
        }
        try:
            captured = await asyncio.wait_for(capture(url, regions), timeout=REGION_CAPTURE_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"Evidence region capture timed out for {url}")
            state.degraded.append("evidence_regions")
            return 0
        except Exception as e:
            logger.warning(f"Evidence region capture failed for {url}: {e}")
            state.degraded.append("evidence_regions")
            return 0

        count = 0
        for name, shot in captured.items():
            if name in elements and shot.success and shot.local_reference:
                elements[name].screenshot = shot.local_reference
                count += 1
        logger.info(f"Captured {count}/{len(elements)} evidence regions")
        return count

    # === REPORTING ===

    async def export(self, result: AuditResult, page: CollectedPage, state: _RunState) -> AuditResult:
        """Export the report; failures leave the result without artifacts."""
        if self.exporter is None:
            return result

        screenshot = None
        if page.screenshot_path and Path(page.screenshot_path).exists():
            screenshot = Path(page.screenshot_path).read_bytes()

        try:
            artifacts = await asyncio.wait_for(
                asyncio.to_thread(self.exporter.export, result, screenshot),
                timeout=self.settings.upload_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Report export timed out for run {result.run.id}")
            state.degraded.append("reporting")
            return result
        except Exception as e:
            logger.warning(f"Report export failed for run {result.run.id}: {e}")
            state.degraded.append("reporting")
            return result

        if not artifacts.report or not artifacts.bundle:
            state.degraded.append("reporting")
        return result.model_copy(update={"export": artifacts})

    # === PIPELINE ===

    async def run(self, run: AuditRun) -> AuditResult:
        """Audit the run's URL.

        Args:
            run: Run being processed (not mutated)

        Returns:
            AuditResult with all ten categories, total score and grade

        Raises:
            CollectionError: If nothing usable could be collected
        """
        state = _RunState(run_id=run.id)
        self._start_progress_writer(state)
        try:
            return await self._run_stages(run, state)
        finally:
            await self._flush_progress(state)

    async def _run_stages(self, run: AuditRun, state: _RunState) -> AuditResult:
        start_time = time.monotonic()
        url = run.url

        await self._report_progress(state, PROGRESS_START, "Collecting page data")
        hint = self.classifier.classify(url)
        await self._report_progress(state, PROGRESS_PLATFORM_HINT, f"Platform hint: {hint.platform.value}")

        page = await self.collect(url, hint.platform)
        if not page.is_full_fidelity:
            state.degraded.append("collection")
        await self._report_progress(state, PROGRESS_COLLECTED, f"Collected via {', '.join(page.sources)}")

        measured = await self.measure(url, page.html, state)
        await self._report_progress(state, PROGRESS_MEASURED, "Performance and markup measured")

        platform = self.classify(page)
        logger.info(f"Platform: {platform.platform.value} ({platform.confidence:.2f})")

        await self._report_progress(state, PROGRESS_GRADING, "Grading storefront")
        output, grader_name = await self.grade(url, platform.platform, page, state)
        await self._report_progress(state, PROGRESS_GRADED, f"Graded by {grader_name}")

        if page.has_screenshot and self.screenshotter is not None:
            await self.capture_evidence_regions(url, output, state)
            await self._report_progress(state, PROGRESS_EVIDENCE, "Evidence regions captured")

        await self._report_progress(state, PROGRESS_SCORING, "Scoring categories")
        categories = inject_measurements(output.categories, measured)
        scoring = self.engine.score(categories, measured, self.rule_config)
        await self._report_progress(state, PROGRESS_SCORED, f"Total score {scoring.total_score}/100")

        grade = output.expert_summary.grade if output.expert_summary else grade_for_score(scoring.total_score)
        screenshots = [page.screenshot_path or page.screenshot] if page.has_screenshot else []
        screenshots.extend(page.action_screenshots)

        result = AuditResult(
            run=run.model_copy(update={"total_score": scoring.total_score}),
            categories=scoring.categories,
            score_sources=scoring.score_sources,
            total_score=scoring.total_score,
            grade=grade,
            platform=platform,
            purchase_flow=output.purchase_flow,
            expert_summary=output.expert_summary,
            screenshots=[s for s in screenshots if s and not s.startswith("data:")],
            grader=grader_name,
            degraded_stages=state.degraded,
        )

        await self._report_progress(state, PROGRESS_REPORTING, "Exporting report")
        result = await self.export(result, page, state)

        elapsed = time.monotonic() - start_time
        await self._report_progress(state, PROGRESS_DONE, "Audit complete")
        logger.info(f"Audit of {url} finished in {elapsed:.1f}s: {scoring.total_score}/100 ({grade})")

        return result.model_copy(
            update={
                "run": result.run.model_copy(update={"elapsed_seconds": elapsed, "progress": PROGRESS_DONE}),
                "degraded_stages": list(state.degraded),
            }
        )


def build_orchestrator(
    settings: AuditSettings,
    run_store: RunStore | None = None,
    progress_callback: ProgressCallback | None = None,
) -> AuditOrchestrator:
    """Wire the production collaborators from settings.

    Raises:
        ConfigurationError: If the signal table or rule file is invalid
    """
    scraper = None
    if settings.use_firecrawl and settings.firecrawl_api_key:
        scraper = FirecrawlScraper(
            api_key=settings.firecrawl_api_key,
            api_base=settings.firecrawl_api_base,
            timeout=settings.scrape_timeout,
        )

    grader = None
    if settings.has_grader_credentials:
        grader = VisionGrader(
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            max_retries=settings.llm_max_retries,
            timeout=settings.grader_timeout,
        )

    return AuditOrchestrator(
        settings=settings,
        fetcher=BasicFetcher(timeout=settings.fetch_timeout),
        classifier=PlatformClassifier(load_signals(settings.platform_signals_path)),
        scraper=scraper,
        screenshotter=PlaywrightScreenshotter(settings.screenshot_dir, timeout=settings.screenshot_timeout),
        performance=LighthouseRunner(settings.lighthouse_command, timeout=settings.lighthouse_timeout),
        grader=grader,
        exporter=ReportExporter(LocalArtifactStore(settings.data_dir)),
        run_store=run_store,
        rule_config=load_rule_config(settings.rules_path),
        progress_callback=progress_callback,
    )
