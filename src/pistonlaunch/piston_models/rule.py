"""
Rule evaluation for version descriptors.

A rule gates a library or an argument on the host platform and on the feature
flags of the current launch session. Each rule yields its action when it
matches and the opposite action when it does not; a gated item is allowed only
when every one of its rules yields ALLOW.
"""

import functools
from enum import Enum
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field


class RuleAction(str, Enum):
    ALLOW = "allow"
    DISALLOW = "disallow"


class OperatingSystem(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    OSX = "osx"


class Architecture(str, Enum):
    X64 = "x64"
    ARM64 = "arm64"
    X86 = "x86"
    ARM32 = "arm32"


class Platform(BaseModel):
    """
    Platform descriptor. Used both for the `os` predicate of a rule and for the
    running host. A missing field matches any value.
    """

    os: Optional[OperatingSystem] = Field(None, alias="name")
    arch: Optional[Architecture] = Field(None)
    version: Optional[str] = Field(None)

    class Config:
        extra = "allow"
        populate_by_name = True
        frozen = True

    def matches(self, current: "Platform") -> bool:
        # TODO: Match `version` against the host once a version pattern format is settled
        return (self.os is None or self.os == current.os) and (
            self.arch is None or self.arch == current.arch
        )


@functools.lru_cache(maxsize=None)
def current_platform() -> Platform:
    """Platform descriptor of the running host, detected once per process."""
    from pistonlaunch.launch_utils import PlatformUtils

    return PlatformUtils.get_current_platform()


class Features(BaseModel):
    """
    Capability flags of a launch session, or the flags a rule requires.

    Flags outside the known set are kept as extra fields and take part in
    containment like the known ones.
    """

    is_demo_user: Optional[bool] = Field(None)
    has_custom_resolution: Optional[bool] = Field(None)
    has_quick_plays_support: Optional[bool] = Field(None)
    is_quick_play_singleplayer: Optional[bool] = Field(None)
    is_quick_play_multiplayer: Optional[bool] = Field(None)
    is_quick_play_realms: Optional[bool] = Field(None)

    class Config:
        extra = "allow"
        frozen = True

    def flags(self) -> Dict[str, Optional[bool]]:
        """
        Returns every flag known to this instance, unset ones included.
        """
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(self.model_extra or {})
        return values

    def contains(self, other: "Features") -> bool:
        """
        Check whether these flags satisfy what `other` requires.

        A flag set on both sides must be equal. A flag unset here fails only
        when `other` requires it to be true. Everything else passes.
        """
        present = self.flags()
        required = other.flags()

        for name in set(present) | set(required):
            mine = present.get(name)
            theirs = required.get(name)
            if mine is not None and theirs is not None:
                if mine != theirs:
                    return False
            elif mine is None and theirs is True:
                return False

        return True


EMPTY_FEATURES = Features()


class Rule(BaseModel):
    """A single allow/disallow gate."""

    action: RuleAction = Field(...)
    platform: Optional[Platform] = Field(None, alias="os")
    features: Optional[Features] = Field(None)

    class Config:
        extra = "allow"
        populate_by_name = True

    def matches(self, present_features: Features, platform: Optional[Platform] = None) -> bool:
        if self.features is not None and not present_features.contains(self.features):
            return False
        if self.platform is not None:
            return self.platform.matches(platform or current_platform())
        return True

    def test(self, present_features: Features, platform: Optional[Platform] = None) -> bool:
        """
        Returns True if this rule yields ALLOW for the given session.
        """
        if self.matches(present_features, platform):
            return self.action == RuleAction.ALLOW
        return self.action == RuleAction.DISALLOW


def evaluate_rules(
    rules: Optional[Iterable[Rule]],
    present_features: Features = EMPTY_FEATURES,
    platform: Optional[Platform] = None,
) -> bool:
    """
    Conjunctive verdict over a rule sequence. No rules means allowed.
    """
    if not rules:
        return True
    return all(rule.test(present_features, platform) for rule in rules)
