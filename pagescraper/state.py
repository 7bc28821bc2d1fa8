import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from pagescraper.models import ScrapeRequest
from pagescraper.utils.deadline import Deadline

log = logging.getLogger(__name__)


class ScrapeState(str, Enum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    NAVIGATING = "navigating"
    LOADING = "loading"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"


TERMINAL = {ScrapeState.DONE, ScrapeState.FAILED}


@dataclass
class ScrapeJob:
    """Per-request bookkeeping. Lives only as long as one scrape call."""

    request: ScrapeRequest
    deadline: Deadline
    limit: int
    state: ScrapeState = ScrapeState.IDLE
    history: List[ScrapeState] = field(default_factory=list)

    def advance(self, new_state: ScrapeState) -> None:
        if self.state in TERMINAL:
            raise RuntimeError(f"scrape already {self.state.value}")
        log.debug("%s: %s -> %s", self.request.target_url, self.state.value, new_state.value)
        self.history.append(self.state)
        self.state = new_state
