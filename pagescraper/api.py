"""HTTP surface: one POST endpoint returning the scrape envelope."""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagescraper.backend import ScrapeBackend
from pagescraper.config import Settings
from pagescraper.dispatcher import get_backend
from pagescraper.errors import InvalidRequest
from pagescraper.models import ScrapeRequest, ScrapeResult

log = logging.getLogger(__name__)

CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def create_app(settings: Optional[Settings] = None, backend: Optional[ScrapeBackend] = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title="pagescraper", version="0.1.0")

    # Read-only after startup; handlers reach them through request.app.state
    app.state.settings = settings
    app.state.backend = backend or get_backend(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_HEADERS,
    )

    @app.post("/scrape")
    async def scrape(request: Request):
        try:
            payload = await request.json()
        except ValueError:
            result = ScrapeResult.failed(InvalidRequest("Request body must be valid JSON"))
            return JSONResponse(result.to_response(), status_code=result.status_code)

        try:
            scrape_request = ScrapeRequest.from_payload(payload)
        except InvalidRequest as exc:
            log.info("Rejected scrape request: %s", exc.message)
            result = ScrapeResult.failed(exc)
        else:
            result = await request.app.state.backend.scrape(scrape_request)

        return JSONResponse(result.to_response(), status_code=result.status_code)

    return app


def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
