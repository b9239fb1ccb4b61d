"""
Run the service: ``python -m salesapi``.

Exits with status 1 when the settings cannot be loaded (e.g. DATABASE_URL unset).
"""

import logging
import os
import sys

import uvicorn
from pydantic import ValidationError


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    log = logging.getLogger("salesapi")
    try:
        from salesapi.core.config import settings
    except ValidationError as e:
        log.critical("Invalid configuration, refusing to start:\n%s", e)
        sys.exit(1)

    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())
    log.info("Server running on http://%s:%s", settings.HOST, settings.PORT)
    uvicorn.run(
        "salesapi.main:app",
        host=settings.HOST,
        port=settings.PORT,
        backlog=8192,
        log_config=None,
    )


if __name__ == "__main__":
    main()
