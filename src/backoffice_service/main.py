"""``backoffice-service`` console script."""

import structlog
import uvicorn

from backoffice_service.observability import configure_logging
from backoffice_service.settings import settings

log = structlog.get_logger(__name__)

APP_FACTORY = "backoffice_service.rest.app:create_app"


def run() -> None:
    """Serve the API until SIGINT/SIGTERM; uvicorn owns the loop and signals."""
    configure_logging(settings.log_level, settings.log_format)
    log.info("starting_service", host=settings.rest_host, rest_port=settings.rest_port)
    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=settings.rest_host,
        port=settings.rest_port,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
    )


if __name__ == "__main__":
    run()
