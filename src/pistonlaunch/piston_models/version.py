"""
Pydantic data models for the version manifest, version descriptors and asset indexes.

These mirror the JSON documents served by the piston-meta endpoints. Unknown
keys are kept so newer documents still parse.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from pistonlaunch.launch_exceptions import ManifestParseError
from pistonlaunch.piston_models.argument import Arguments
from pistonlaunch.piston_models.library import Library

VERSION_MANIFEST_URL = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"
RESOURCES_URL = "https://resources.download.minecraft.net"


class VersionType(str, Enum):
    RELEASE = "release"
    SNAPSHOT = "snapshot"
    OLD_BETA = "old_beta"
    OLD_ALPHA = "old_alpha"


# ============================================================================
# Manifest
# ============================================================================


class LatestVersions(BaseModel):
    release: str = Field(...)
    snapshot: str = Field(...)

    class Config:
        extra = "allow"


class Version(BaseModel):
    """An entry of the version manifest."""

    id: str = Field(...)
    version_type: VersionType = Field(..., alias="type")
    url: str = Field(...)
    time: datetime = Field(...)
    release_time: datetime = Field(..., alias="releaseTime")
    sha1: str = Field(...)
    compliance_level: int = Field(0, alias="complianceLevel")

    class Config:
        extra = "allow"
        populate_by_name = True


class VersionManifest(BaseModel):
    """Top-level manifest listing every available version."""

    latest: LatestVersions = Field(...)
    versions: List[Version] = Field(default_factory=list)

    class Config:
        extra = "allow"

    def get_version(self, version_id: str) -> Optional[Version]:
        for version in self.versions:
            if version.id == version_id:
                return version
        return None


# ============================================================================
# Version descriptor
# ============================================================================


class Download(BaseModel):
    sha1: str = Field(...)
    size: int = Field(...)
    url: str = Field(...)

    class Config:
        extra = "allow"


class Downloads(BaseModel):
    client: Download = Field(...)
    client_mappings: Optional[Download] = Field(None)
    server: Optional[Download] = Field(None)
    server_mappings: Optional[Download] = Field(None)
    windows_server: Optional[Download] = Field(None)

    class Config:
        extra = "allow"


class AssetIndex(BaseModel):
    """Reference to the asset index of a version."""

    id: str = Field(...)
    sha1: str = Field(...)
    size: int = Field(...)
    total_size: int = Field(..., alias="totalSize")
    url: str = Field(...)

    class Config:
        extra = "allow"
        populate_by_name = True


class JavaVersion(BaseModel):
    component: str = Field(...)
    major_version: int = Field(..., alias="majorVersion")

    class Config:
        extra = "allow"
        populate_by_name = True


class LoggingFile(BaseModel):
    id: str = Field(...)
    sha1: str = Field(...)
    size: int = Field(...)
    url: str = Field(...)

    class Config:
        extra = "allow"


class LoggingClient(BaseModel):
    argument: str = Field(..., description="JVM argument template containing ${path}")
    file: LoggingFile = Field(...)
    logging_type: str = Field(..., alias="type")

    class Config:
        extra = "allow"
        populate_by_name = True


class Logging(BaseModel):
    client: Optional[LoggingClient] = Field(None)

    class Config:
        extra = "allow"


class FetchedVersion(BaseModel):
    """
    Complete version descriptor.

    `arguments` is the structured template for modern versions; versions up to
    1.12 carry a single `minecraftArguments` string instead, which is accepted
    here and refused when compiling.
    """

    arguments: Arguments = Field(
        ..., validation_alias=AliasChoices("arguments", "minecraftArguments")
    )
    asset_index: AssetIndex = Field(..., alias="assetIndex")
    assets: str = Field(...)
    compliance_level: Optional[int] = Field(None, alias="complianceLevel")
    downloads: Downloads = Field(...)
    id: str = Field(...)
    java_version: Optional[JavaVersion] = Field(None, alias="javaVersion")
    libraries: List[Library] = Field(default_factory=list)
    logging: Optional[Logging] = Field(None)
    main_class: str = Field(..., alias="mainClass")
    minimum_launcher_version: int = Field(0, alias="minimumLauncherVersion")
    release_time: datetime = Field(..., alias="releaseTime")
    time: datetime = Field(...)
    version_type: VersionType = Field(..., alias="type")

    class Config:
        extra = "allow"
        populate_by_name = True

    def has_split_arguments(self) -> bool:
        return not isinstance(self.arguments, str)


# ============================================================================
# Asset index
# ============================================================================


class AssetObject(BaseModel):
    hash: str = Field(..., pattern=r"^[0-9a-fA-F]{40}$")
    size: int = Field(...)

    class Config:
        extra = "allow"

    def relative_path(self) -> str:
        """Content-addressed location, shared by the download URL and the objects directory."""
        return f"{self.hash[:2]}/{self.hash}"


class FetchedAssetIndex(BaseModel):
    objects: Dict[str, AssetObject] = Field(default_factory=dict)

    class Config:
        extra = "allow"


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_document(model: Type[ModelT], data: bytes, source: str) -> ModelT:
    """
    Parse a JSON document into the given model.

    Args:
        model: Model class to validate against
        data: Raw document bytes
        source: URL or path of the document, used in error messages

    Raises:
        ManifestParseError: If the document is not valid JSON or does not fit the model
    """
    try:
        return model.model_validate(json.loads(data))
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        raise ManifestParseError(source, str(e)) from e
