"""Options record for a key-case conversion call."""

from re import Pattern

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from casekit.core.constants import PATH_SEPARATOR
from casekit.core.types import KeyMatcher, KeyPath


class CaseOptions(BaseModel):
    """Options applied uniformly to one conversion call and all its recursion.

    Fields may also be given under their camelCase names (``pascalCase``,
    ``preserveConsecutiveUppercase``, ``stopPaths``) when validating a mapping.

    Stop paths are dot-joined strings (``"a_c.c_e"``) or explicit segment
    tuples (``("a_c", "c_e")``). A dot-joined string cannot name a key that
    itself contains a dot; use the tuple form for such keys.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    exclude: tuple[str | Pattern[str], ...] = Field(
        default=(),
        description="Keys matching one of these are copied without conversion",
    )
    deep: bool = Field(
        default=False,
        description="Recurse into nested mappings and sequences",
    )
    pascal_case: bool = Field(
        default=False,
        description="Uppercase the first character: foo-bar -> FooBar",
    )
    preserve_consecutive_uppercase: bool = Field(
        default=False,
        description="Keep uppercase runs: foo-BAR -> fooBAR",
    )
    stop_paths: tuple[str | tuple[str, ...], ...] = Field(
        default=(),
        description="Paths whose key is converted but whose children are not",
    )

    def stop_path_set(self) -> frozenset[KeyPath]:
        """Parse stop paths into segment tuples."""
        return frozenset(
            tuple(path.split(PATH_SEPARATOR)) if isinstance(path, str) else path
            for path in self.stop_paths
        )

    def is_excluded(self, key: str) -> bool:
        """Check whether a key matches any exclusion matcher."""
        return any(_matches(matcher, key) for matcher in self.exclude)


def _matches(matcher: KeyMatcher, key: str) -> bool:
    if isinstance(matcher, str):
        return matcher == key
    return matcher.search(key) is not None
