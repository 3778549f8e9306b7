"""Hierarchy resolver: Project -> VersionGroup -> Version.

Each level is resolved with a single find-or-create against the store, in
order, each keyed on the identifier of the level above it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from loguru import logger
from neo4j.exceptions import DriverError, Neo4jError

from librarian.ingest.errors import HierarchyResolutionError
from librarian.models.schemas import Descriptor, ProjectNode, VersionGroupNode, VersionNode
from librarian.utils.helpers import generate_uuid, now_utc


class Store(Protocol):
    def find_or_create(
        self, label: str, key: Dict[str, Any], defaults: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]: ...

    def create(self, label: str, properties: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    def link(self, from_label: str, from_id: str, rel_type: str, to_label: str, to_id: str) -> bool: ...


@dataclass(slots=True)
class Hierarchy:
    """Resolved nodes a build belongs to."""

    project: ProjectNode
    group: VersionGroupNode
    version: VersionNode


def version_group_name(version: str) -> str:
    """Return the major.minor line of ``version`` ("1.19.4" -> "1.19")."""
    return ".".join(version.split(".")[:2])


def _find_or_create(store: Store, label: str, key: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    try:
        node = store.find_or_create(label, key, {**defaults, **key})
    except (Neo4jError, DriverError) as e:
        raise HierarchyResolutionError(label, key, e) from e

    if not node:
        raise HierarchyResolutionError(label, key)
    return node


def _link(store: Store, from_label: str, from_id: str, rel_type: str, to_label: str, to_id: str) -> None:
    try:
        linked = store.link(from_label, from_id, rel_type, to_label, to_id)
    except (Neo4jError, DriverError) as e:
        raise HierarchyResolutionError(from_label, {"id": from_id}, e) from e

    if not linked:
        logger.warning(f"Could not link {from_label} {from_id} -[:{rel_type}]-> {to_label} {to_id}")


def resolve_hierarchy(store: Store, descriptor: Descriptor) -> Hierarchy:
    """
    Resolve or create the Project, VersionGroup and Version for ``descriptor``.

    Nodes created here are kept even if a later stage of the ingestion fails.

    Raises:
        HierarchyResolutionError: a find-or-create step returned nothing or
            the store rejected it
    """
    project = ProjectNode.model_validate(_find_or_create(
        store,
        "Project",
        {"name": descriptor.project},
        {"id": generate_uuid(), "friendlyName": descriptor.repo},
    ))

    group_name = version_group_name(descriptor.version)
    group = VersionGroupNode.model_validate(_find_or_create(
        store,
        "VersionGroup",
        {"project": project.id, "name": group_name},
        {"id": generate_uuid()},
    ))
    _link(store, "VersionGroup", group.id, "PART_OF", "Project", project.id)

    version = VersionNode.model_validate(_find_or_create(
        store,
        "Version",
        {"project": project.id, "name": descriptor.version},
        {"id": generate_uuid(), "group": group.id, "time": now_utc()},
    ))
    _link(store, "Version", version.id, "IN_GROUP", "VersionGroup", version.group)

    logger.info(
        f"Resolved {project.name} ({project.id}) / {group.name} ({group.id}) / "
        f"{version.name} ({version.id})"
    )
    return Hierarchy(project=project, group=group, version=version)
