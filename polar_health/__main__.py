import logging

import uvicorn

from .config import settings
from .main import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point for the server."""
    configure_logging(settings.LOG_LEVEL)
    client_id = settings.POLAR_CLIENT_ID
    logger.info(f"Polar Health Integration running on port {settings.PORT}")
    logger.info(f"Polar Client ID: {client_id[:8] + '...' if client_id else '(not set)'}")
    logger.info(f"OAuth redirect URI: {settings.redirect_uri}")
    try:
        uvicorn.run("polar_health.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
    except Exception as e:
        logger.error(f"Server error: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
