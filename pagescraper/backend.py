import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List

from pagescraper.config import Settings
from pagescraper.errors import InvalidRequest, ScrapeError, TargetUnavailable
from pagescraper.models import Record, ScrapeRequest, ScrapeResult
from pagescraper.state import ScrapeJob, ScrapeState
from pagescraper.utils.deadline import Deadline

log = logging.getLogger(__name__)


class ScrapeBackend(ABC):
    """
    One attempt per call: validate, run under the request deadline, and turn
    every outcome into a ScrapeResult. Retrying is the caller's business.

    Backends keep nothing but the immutable settings, so one instance can
    serve concurrent requests.
    """

    name: str = "base"

    def __init__(self, settings: Settings):
        self.settings = settings

    @abstractmethod
    async def _run(self, job: ScrapeJob) -> List[Record]:
        """Produce the records for one validated request or raise a ScrapeError."""
        ...

    async def scrape(self, request: ScrapeRequest) -> ScrapeResult:
        try:
            request.validate()
        except InvalidRequest as exc:
            log.warning("Rejected request for %r: %s", request.target_url, exc.message)
            return ScrapeResult.failed(exc, request)

        timeout = request.effective_timeout(self.settings.request_timeout_s, self.settings.max_request_timeout_s)
        job = ScrapeJob(
            request=request,
            deadline=Deadline(timeout),
            limit=request.effective_limit(self.settings.default_limit, self.settings.max_limit),
        )
        log.info("Scraping %s (%s, limit=%d, backend=%s)", request.target_url, request.mode.value, job.limit, self.name)

        try:
            records = await asyncio.wait_for(self._run(job), timeout=timeout)
        except asyncio.TimeoutError:
            error = TargetUnavailable(
                "Scrape did not finish in time",
                details=f"deadline of {timeout:g}s exceeded while {job.state.value}",
            )
        except ScrapeError as exc:
            error = exc
        except Exception as exc:
            log.exception("Unexpected failure while scraping %s", request.target_url)
            error = ScrapeError(details=str(exc))
        else:
            job.advance(ScrapeState.DONE)
            log.info("Scraped %d %s from %s", len(records), request.mode.value, request.target_url)
            return ScrapeResult.ok(records, request)

        log.warning(
            "Scrape of %s failed while %s: %s [%s] %s",
            request.target_url, job.state.value, error.kind, error.message, error.details or "",
        )
        job.advance(ScrapeState.FAILED)
        return ScrapeResult.failed(error, request)
