import logging

import uvicorn

from .app import configure_logging, create_app
from .config import load_settings


def main() -> None:
    settings = load_settings()
    configure_logging(settings.logging.level)
    logger = logging.getLogger("roomrelay")
    logger.info("Starting roomrelay on %s:%s", settings.server.host, settings.server.port)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
