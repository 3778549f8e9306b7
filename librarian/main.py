"""
Build Librarian - upload ingestion entry point

Watches the upload directory for build descriptors and:
- Records projects, versions and builds in Neo4j
- Moves artifacts into permanent storage
- Cleans up the uploaded files
"""

import sys

from loguru import logger
from neo4j.exceptions import DriverError, Neo4jError

from librarian.ingest.watchers.filesystem import UploadWatcher
from librarian.utils.config import get_settings
from librarian.utils.neo4j_client import Neo4jClient


def configure_logging(level: str = "INFO"):
    """Replace loguru's default sink with the application format."""
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level
    )


def main() -> int:
    """Main entry point."""
    settings = get_settings()
    configure_logging(settings.log_level.upper())
    logger.info("Build Librarian - Upload Watcher")

    client = Neo4jClient()
    try:
        client.connect()
        client.ensure_schema()
    except (Neo4jError, DriverError) as e:
        # Ingestions retry the schema and report store errors individually
        logger.warning(f"Neo4j unavailable at startup, watching anyway: {e}")

    try:
        UploadWatcher(settings, client).run()

    except KeyboardInterrupt:
        logger.info("Upload watcher stopped by user")
    except Exception as e:
        logger.error(f"Upload watcher failed: {e}")
        return 1
    finally:
        client.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
