"""Create all tables for a fresh database without running migrations."""

import logging

from forum_stage.db.session import create_tables, engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    logger.info("Database initialized at %s", engine.url.render_as_string(hide_password=True))
