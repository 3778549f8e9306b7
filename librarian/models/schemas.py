"""
Pydantic models for the Build Librarian.

Shared data models across the ingestion stages.
"""

from datetime import datetime
from typing import List, Optional, Dict
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# =====================================================
# Descriptor Models
# =====================================================

class Change(BaseModel):
    """A single commit included in a build."""
    commit: str
    summary: str
    message: str


class Download(BaseModel):
    """A downloadable artifact declared by a descriptor."""
    name: str
    checksum: str = Field(validation_alias=AliasChoices("checksum", "sha256"))


class Descriptor(BaseModel):
    """Parsed metadata descriptor uploaded alongside a build's artifacts."""
    model_config = ConfigDict(populate_by_name=True)

    project: str
    repo: str
    version: str
    number: int
    changes: List[Change]
    downloads: Dict[str, Download]
    supported_java_versions: List[str] = Field(alias="supportedJavaVersions")
    supported_bedrock_versions: List[str] = Field(alias="supportedBedrockVersions")


# =====================================================
# Store Models
# =====================================================

class ProjectNode(BaseModel):
    """Project node model."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    friendly_name: Optional[str] = Field(default=None, alias="friendlyName")


class VersionGroupNode(BaseModel):
    """Version group (major.minor line) node model."""
    id: str
    project: str
    name: str


class VersionNode(BaseModel):
    """Version node model."""
    id: str
    project: str
    group: str
    name: str
    time: Optional[datetime] = None


class BuildNode(BaseModel):
    """Build node model."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    project: str
    version: str
    number: int
    time: Optional[datetime] = None
    channel: str
    promoted: bool = False
    supported_java_versions: List[str] = Field(default_factory=list, alias="supportedJavaVersions")
    supported_bedrock_versions: List[str] = Field(default_factory=list, alias="supportedBedrockVersions")
