"""Create all tables directly from the ORM metadata (local development)."""
import logging

from inkwell.core.logging_config import configure_logging
from inkwell.db.session import create_tables

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()


if __name__ == "__main__":
    configure_logging()
    init_db()
    logger.info("Database initialized.")
