"""
Argument templates of a version descriptor and their compilation into a
concrete command line.
"""

import dataclasses
import re
from typing import Callable, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from pistonlaunch.launch_exceptions import UnsupportedArgumentsError
from pistonlaunch.piston_models.rule import EMPTY_FEATURES, Features, Platform, Rule, evaluate_rules

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]*)\}")

# Flags that take the following token as their value. -X and -D options carry
# their value inline.
VALUE_ARGUMENT_PATTERN = re.compile(r"^-[^XD]")

PlaceholderFormatter = Callable[[str], Optional[str]]


class RuledArgument(BaseModel):
    """An argument emitted only when all of its rules allow it."""

    rules: List[Rule] = Field(default_factory=list)
    value: Union[str, List[str]] = Field(...)

    class Config:
        extra = "allow"

    def raw(self) -> List[str]:
        if isinstance(self.value, str):
            return [self.value]
        return list(self.value)


Argument = Union[str, RuledArgument]


class SplitArguments(BaseModel):
    """
    Structured argument template: runtime (jvm) and program (game) halves.
    """

    game: List[Argument] = Field(default_factory=list)
    jvm: List[Argument] = Field(default_factory=list)

    class Config:
        extra = "allow"


# Versions up to 1.12 ship `minecraftArguments` as one opaque string.
Arguments = Union[SplitArguments, str]


@dataclasses.dataclass
class CompiledArguments:
    """
    Final argument lists of one launch attempt.
    """

    jvm: List[str] = dataclasses.field(default_factory=list)
    game: List[str] = dataclasses.field(default_factory=list)


def get_if_allowed(
    argument: Argument,
    present_features: Features,
    platform: Optional[Platform] = None,
) -> Optional[List[str]]:
    """
    Returns the tokens of an argument, or None if its rules deny it.
    """
    if isinstance(argument, str):
        return [argument]
    if evaluate_rules(argument.rules, present_features, platform):
        return argument.raw()
    return None


def substitute_placeholders(token: str, placeholder_formatter: PlaceholderFormatter) -> Optional[str]:
    """
    Replaces every ${name} marker in a token. Returns None if any marker cannot
    be resolved.
    """
    unresolved = False

    def replace(match: "re.Match[str]") -> str:
        nonlocal unresolved
        value = placeholder_formatter(match.group(1))
        if value is None:
            unresolved = True
            return match.group(0)
        return value

    substituted = PLACEHOLDER_PATTERN.sub(replace, token)
    if unresolved:
        return None
    return substituted


def compile_part(
    arguments: Iterable[Argument],
    placeholder_formatter: PlaceholderFormatter,
    present_features: Features = EMPTY_FEATURES,
    platform: Optional[Platform] = None,
) -> List[str]:
    """
    Compiles one half of the template.

    A value flag followed by a bare ${name} token is emitted together with the
    resolved value, or not at all when the value or a marker inside the flag
    is missing. Every other token
    has its markers substituted inline and is dropped when one cannot be
    resolved.
    """
    tokens: List[str] = []
    for argument in arguments:
        allowed = get_if_allowed(argument, present_features, platform)
        if allowed is not None:
            tokens.extend(allowed)

    compiled: List[str] = []
    index = 0
    while index < len(tokens):
        argument = tokens[index]
        index += 1

        if VALUE_ARGUMENT_PATTERN.match(argument) and index < len(tokens):
            placeholder = PLACEHOLDER_PATTERN.fullmatch(tokens[index])
            if placeholder is not None:
                index += 1
                value = placeholder_formatter(placeholder.group(1))
                flag = None
                if value is not None:
                    flag = substitute_placeholders(argument, placeholder_formatter)
                if flag is not None:
                    compiled.append(flag)
                    compiled.append(value)
                continue

        substituted = substitute_placeholders(argument, placeholder_formatter)
        if substituted is not None:
            compiled.append(substituted)

    return compiled


def compile_arguments(
    arguments: Arguments,
    placeholder_formatter: PlaceholderFormatter,
    present_features: Features = EMPTY_FEATURES,
    platform: Optional[Platform] = None,
    version_id: str = "",
) -> CompiledArguments:
    """
    Compiles an argument template into jvm and game argument lists.

    Raises:
        UnsupportedArgumentsError: If the template is the legacy single-string form
    """
    if isinstance(arguments, str):
        raise UnsupportedArgumentsError(version_id)

    return CompiledArguments(
        jvm=compile_part(arguments.jvm, placeholder_formatter, present_features, platform),
        game=compile_part(arguments.game, placeholder_formatter, present_features, platform),
    )
