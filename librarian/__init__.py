"""Build Librarian: ingests uploaded builds into Neo4j and permanent storage."""

__version__ = "1.0.0"
