import logging
import sys

import uvicorn

from spotify_bridge.config.settings import load_settings
from spotify_bridge.main import create_app
from spotify_bridge.services.errors import ConfigError

logger = logging.getLogger(__name__)


def main():
    try:
        settings = load_settings()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Refusing to start: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings)
    logger.info(f"Spotify GPT bridge listening on port {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
