#!/usr/bin/env python3
"""
Initialize Neo4j schema with the librarian's uniqueness constraints.

The constraints back the find-or-create used for projects, version groups
and versions. The watcher also applies them on startup; this script is for
preparing a database ahead of time.

Usage:
    python scripts/init_schema.py
"""

import sys

from loguru import logger
from neo4j.exceptions import DriverError, Neo4jError

from librarian.utils.neo4j_client import Neo4jClient


def verify_schema(client: Neo4jClient):
    """Verify schema setup by listing constraints."""
    with client.session() as session:
        logger.info("=== Constraints ===")
        for record in session.run("SHOW CONSTRAINTS"):
            logger.info(f"  {record.get('name', 'N/A')}: {record.get('type', 'N/A')}")


def main():
    """Main initialization function."""
    logger.info("Starting Neo4j schema initialization...")

    client = Neo4jClient()

    try:
        applied = client.ensure_schema()
        logger.info(f"Applied {applied} statements")

        verify_schema(client)
        logger.success("Schema initialization completed successfully!")
        return 0

    except (Neo4jError, DriverError) as e:
        logger.error(f"Schema initialization failed: {e}")
        return 1

    finally:
        client.close()
        logger.info("Disconnected from Neo4j")


if __name__ == "__main__":
    sys.exit(main())
