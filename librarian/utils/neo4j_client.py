"""
Neo4j client with connection pooling and document-style helpers.

Provides:
- Connection pool management
- Per-ingestion store sessions
- Atomic find-or-create and insert patterns
- Schema (uniqueness constraint) installation
"""

import threading
from contextlib import contextmanager
from importlib import resources
from typing import Any, Dict, Iterator, List, Optional
from neo4j import GraphDatabase, Session
from loguru import logger

from librarian.utils.config import get_settings


def read_schema_file(content: str) -> List[str]:
    """
    Split Cypher schema text into individual statements.

    Ignores comments and empty lines.
    """
    statements = []
    for stmt in content.split(";"):
        # Remove comment lines
        lines = [line for line in stmt.split("\n") if not line.strip().startswith("//")]
        stmt_clean = "\n".join(lines).strip()

        if stmt_clean:
            statements.append(stmt_clean)

    return statements


def load_schema_statements() -> List[str]:
    """Load the bundled constraint statements."""
    content = resources.files("librarian").joinpath("schema/constraints.cypher").read_text(encoding="utf-8")
    return read_schema_file(content)


def _native(value: Any) -> Any:
    """Convert neo4j temporal values to their Python equivalents."""
    to_native = getattr(value, "to_native", None)
    return to_native() if callable(to_native) else value


def _node_to_dict(node) -> Dict[str, Any]:
    return {key: _native(value) for key, value in dict(node).items()}


class NodeStore:
    """Document-style operations bound to a single Neo4j session."""

    def __init__(self, session: Session):
        self.session = session

    def find_or_create(
        self,
        label: str,
        key: Dict[str, Any],
        defaults: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Return the node matching ``key``, creating it from ``defaults`` if absent.

        The match and the insert happen in one MERGE, so concurrent callers
        racing on the same key end up with a single node. Properties of an
        existing node are never overwritten.

        Args:
            label: Node label (collection)
            key: Identity properties to match on
            defaults: Properties set only when the node is created

        Returns:
            The post-operation node as a dict, or None if nothing came back
        """
        pattern = ", ".join(f"{name}: $key_{name}" for name in key)
        query = f"""
        MERGE (n:{label} {{{pattern}}})
        ON CREATE SET n += $defaults
        RETURN n
        """
        params = {f"key_{name}": value for name, value in key.items()}
        params["defaults"] = defaults

        record = self.session.execute_write(lambda tx: tx.run(query, params).single())
        return _node_to_dict(record["n"]) if record else None

    def create(self, label: str, properties: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Create a node with given label and properties."""
        query = f"""
        CREATE (n:{label})
        SET n = $props
        RETURN n
        """
        record = self.session.execute_write(lambda tx: tx.run(query, {"props": properties}).single())
        return _node_to_dict(record["n"]) if record else None

    def link(self, from_label: str, from_id: str, rel_type: str, to_label: str, to_id: str) -> bool:
        """Create relationship between two nodes identified by ``id``."""
        query = f"""
        MATCH (a:{from_label} {{id: $from_id}})
        MATCH (b:{to_label} {{id: $to_id}})
        MERGE (a)-[r:{rel_type}]->(b)
        RETURN r
        """
        record = self.session.execute_write(
            lambda tx: tx.run(query, {"from_id": from_id, "to_id": to_id}).single()
        )
        return record is not None


class Neo4jClient:
    """
    Owns the pooled Neo4j driver shared by all ingestions.

    The driver is created lazily and survives an unreachable server: each
    ingestion borrows its own session through ``store()``, so an outage only
    fails the ingestions that run during it.
    """

    def __init__(self, uri: str = None, user: str = None, password: str = None, database: str = None):
        settings = get_settings()
        self.uri = uri or settings.neo4j_uri
        self.user = user or settings.neo4j_user
        self.password = password or settings.neo4j_password
        self.database = database or settings.neo4j_database

        self._driver = None
        self._schema_applied = False
        self._schema_lock = threading.Lock()

    @property
    def driver(self):
        """Pooled driver; no connection is opened until a session needs one."""
        if self._driver is None:
            self._driver = GraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password),
                max_connection_lifetime=3600,
                max_connection_pool_size=50,
                connection_acquisition_timeout=120
            )
        return self._driver

    def connect(self):
        """Check that Neo4j is reachable, raising the driver's error if not."""
        logger.info(f"Connecting to Neo4j at {self.uri}...")
        self.driver.verify_connectivity()
        logger.success("Connected to Neo4j successfully")

    def close(self):
        """Release every pooled connection."""
        if self._driver:
            logger.info("Closing Neo4j connection...")
            self._driver.close()
            self._driver = None

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Borrow a session from the pool for the duration of the block."""
        session = self.driver.session(database=self.database)
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def store(self) -> Iterator[NodeStore]:
        """
        Yield a NodeStore on a fresh session, scoped to one ingestion.

        Constraints are applied on first use when startup could not reach
        the server.
        """
        if not self._schema_applied:
            self.ensure_schema()
        with self.session() as session:
            yield NodeStore(session)

    def ensure_schema(self) -> int:
        """Install uniqueness constraints; statements are idempotent."""
        with self._schema_lock:
            statements = load_schema_statements()
            with self.session() as session:
                for statement in statements:
                    session.run(statement).consume()
            self._schema_applied = True
        logger.debug(f"Applied {len(statements)} schema statements")
        return len(statements)
