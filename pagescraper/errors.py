from typing import Optional


class ScrapeError(Exception):
    """Base class for every failure that ends a scrape request.

    ``message`` is short and safe to return to callers; ``details`` is an
    optional human-readable hint (never a traceback).
    """

    kind = "ScrapeError"
    status_code = 500
    default_message = "Failed to scrape data"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidRequest(ScrapeError):
    kind = "InvalidRequest"
    status_code = 400
    default_message = "Invalid scrape request"


class AuthError(ScrapeError):
    kind = "AuthError"
    default_message = "credentials rejected or additional verification required"


class TargetUnavailable(ScrapeError):
    kind = "TargetUnavailable"
    default_message = "Target page is unavailable"


class ExtractionError(ScrapeError):
    kind = "ExtractionError"
    default_message = "Could not extract records from the page"


class LaunchError(ScrapeError):
    kind = "LaunchError"
    default_message = "Browser session could not be started"


class UpstreamError(ScrapeError):
    kind = "UpstreamError"
    default_message = "Upstream scraping API failed"
