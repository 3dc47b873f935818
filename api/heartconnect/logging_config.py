import logging
import sys

from .config import LOG_LEVEL


def setup_logging() -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("heartconnect").setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
