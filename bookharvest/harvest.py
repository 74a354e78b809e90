"""Harvest orchestrator — fetch, extract, score and rank for one search task."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

import httpx

from bookharvest.adapters.base import SiteAdapter
from bookharvest.adapters.registry import get_adapter
from bookharvest.config import Config
from bookharvest.errors import FetchError
from bookharvest.extract import extract_with_strategy, find_download_link
from bookharvest.fetch import fetch
from bookharvest.models import Candidate, SearchTask
from bookharvest.ranking import rank
from bookharvest.scoring import score_candidate

log = logging.getLogger(__name__)


class HarvestState(Enum):
    PENDING = "pending"
    FETCH_SEARCH = "fetch_search"
    PARSE = "parse"
    SCORE = "score"
    RANK = "rank"
    DONE = "done"
    FAILED_EMPTY = "failed_empty"


@dataclass
class HarvestReport:
    """Results plus what happened along the way."""

    task: SearchTask
    results: list[Candidate] = field(default_factory=list)
    state: HarvestState = HarvestState.PENDING
    strategy: str | None = None
    error: str | None = None
    elapsed: float = 0.0


async def harvest(
    task: SearchTask,
    config: Config | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[Candidate]:
    """Run one harvest and return the ranked candidates (possibly empty)."""
    report = await harvest_with_report(task, config, client)
    return report.results


async def harvest_with_report(
    task: SearchTask,
    config: Config | None = None,
    client: httpx.AsyncClient | None = None,
) -> HarvestReport:
    """Run one harvest and return results with state and error details.

    Raises:
        UnknownSiteError: ``task.target_site`` has no adapter.
    """
    config = config or Config()
    adapter = get_adapter(task.target_site)
    report = HarvestReport(task=task)
    start = time.monotonic()

    try:
        await _run(report, adapter, config, client)
    finally:
        report.elapsed = time.monotonic() - start

    return report


async def _run(
    report: HarvestReport,
    adapter: SiteAdapter,
    config: Config,
    client: httpx.AsyncClient | None,
) -> None:
    task = report.task

    report.state = HarvestState.FETCH_SEARCH
    url = adapter.search_url(task.search_term(adapter.author_in_query))
    log.info("Searching %s: %s", adapter.name, url)
    try:
        page = await fetch(
            url,
            adapter.headers,
            retries=config.retries,
            base_delay=config.base_delay,
            timeout=config.timeout,
            client=client,
        )
    except FetchError as e:
        log.warning("%s search failed: %s", adapter.name, e)
        report.error = str(e)
        report.state = HarvestState.FAILED_EMPTY
        return

    report.state = HarvestState.PARSE
    report.strategy, candidates = extract_with_strategy(page.text, adapter, task)
    if not candidates:
        report.state = HarvestState.FAILED_EMPTY
        return

    report.state = HarvestState.SCORE
    scored = [score_candidate(c, task, adapter) for c in candidates]
    relevant = [c for c in scored if c.relevance >= config.min_relevance]
    log.debug(
        "%s: %d of %d candidates reached relevance %d",
        adapter.name,
        len(relevant),
        len(scored),
        config.min_relevance,
    )

    report.state = HarvestState.RANK
    report.results = rank(relevant, config.limit)

    if adapter.needs_detail_fetch:
        for candidate in report.results:
            if candidate.download_url is None:
                candidate.download_url = await _discover_download(candidate, adapter, config, client)

    report.state = HarvestState.DONE


async def _discover_download(
    candidate: Candidate,
    adapter: SiteAdapter,
    config: Config,
    client: httpx.AsyncClient | None,
) -> str | None:
    try:
        page = await fetch(
            candidate.detail_url,
            adapter.headers,
            retries=0,
            timeout=config.timeout,
            client=client,
        )
    except FetchError as e:
        log.info("%s detail page unavailable: %s", adapter.name, e)
        return None
    return find_download_link(page.text, adapter, candidate.detail_url)
