"""
Supporting packages (libraries) listed by a version descriptor.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from pistonlaunch.piston_models.rule import EMPTY_FEATURES, Features, Platform, Rule, evaluate_rules


class LibraryDownload(BaseModel):
    path: str = Field(..., description="Path relative to the libraries directory")
    sha1: str = Field(...)
    size: int = Field(...)
    url: str = Field(...)

    class Config:
        extra = "allow"


class LibraryDownloads(BaseModel):
    # TODO: Support native classifiers for versions that still ship them
    artifact: Optional[LibraryDownload] = Field(None)

    class Config:
        extra = "allow"


class Library(BaseModel):
    """
    A library entry, optionally gated by rules and optionally downloadable.
    """

    name: str = Field(...)
    downloads: LibraryDownloads = Field(default_factory=LibraryDownloads)
    rules: Optional[List[Rule]] = Field(None)

    class Config:
        extra = "allow"

    def is_allowed(
        self,
        present_features: Features = EMPTY_FEATURES,
        platform: Optional[Platform] = None,
    ) -> bool:
        return evaluate_rules(self.rules, present_features, platform)

    def get_artifact(self) -> Optional[LibraryDownload]:
        return self.downloads.artifact
