"""Build recorder: appends one Build node per ingestion."""

from __future__ import annotations

from loguru import logger
from neo4j.exceptions import DriverError, Neo4jError

from librarian.ingest.errors import BuildRecordError
from librarian.ingest.resolver import Hierarchy, Store
from librarian.models.schemas import BuildNode, Descriptor
from librarian.utils.helpers import generate_uuid, now_utc, to_json


def build_properties(hierarchy: Hierarchy, descriptor: Descriptor, channel: str) -> dict:
    """Return the properties of a new Build node.

    Changes and downloads are nested, so they are stored as JSON strings.
    """
    return {
        "id": generate_uuid(),
        "project": hierarchy.project.id,
        "version": hierarchy.version.id,
        "number": descriptor.number,
        "time": now_utc(),
        "changes": to_json([change.model_dump() for change in descriptor.changes]),
        "downloads": to_json({key: download.model_dump() for key, download in descriptor.downloads.items()}),
        "promoted": False,
        "channel": channel,
        "supportedJavaVersions": list(descriptor.supported_java_versions),
        "supportedBedrockVersions": list(descriptor.supported_bedrock_versions),
    }


def record_build(store: Store, hierarchy: Hierarchy, descriptor: Descriptor, channel: str) -> BuildNode:
    """
    Insert a new Build node; builds are never upserted or deduplicated.

    Raises:
        BuildRecordError: the store rejected the insert or returned nothing
    """
    try:
        node = store.create("Build", build_properties(hierarchy, descriptor, channel))
    except (Neo4jError, DriverError) as e:
        raise BuildRecordError(f"Failed to insert build {descriptor.number}: {e}") from e

    if not node:
        raise BuildRecordError(f"Insert of build {descriptor.number} returned nothing")

    build = BuildNode.model_validate(node)
    try:
        linked = store.link("Build", build.id, "BUILD_OF", "Version", hierarchy.version.id)
    except (Neo4jError, DriverError) as e:
        raise BuildRecordError(f"Failed to link build {build.id} to version: {e}") from e
    if not linked:
        logger.warning(f"Could not link build {build.id} to version {hierarchy.version.id}")

    logger.success(
        f"Inserted build {build.number} (channel: {build.channel}) for project "
        f"{hierarchy.project.name} ({hierarchy.project.id}) version "
        f"{hierarchy.version.name} ({hierarchy.version.id}): {build.id}"
    )
    return build
