"""
ShelfSpot Client — Entry Point.

`python main.py` bootstraps the client layer against the configured server,
runs one connection test and logs the resulting state.
"""

import asyncio
import logging

from shelfspot.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from shelfspot.app import create_app

logger = logging.getLogger(__name__)


async def run() -> None:
    app = create_app()
    try:
        await app.bootstrap.initialize()
        if not app.config.is_configured:
            logger.warning(
                "Server address is still the placeholder %s", app.config.server_address,
            )
        await app.config.test_connection()
        logger.info(
            "Ready: server=%s status=%s user=%s theme=%s",
            app.config.server_address,
            app.config.status.value,
            app.auth.user.email if app.auth.user else None,
            app.theme.resolved_theme,
        )
        if app.config.error:
            logger.info("Connection error: %s", app.config.error)
    finally:
        app.bootstrap.shutdown()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
