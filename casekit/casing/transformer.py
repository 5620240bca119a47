"""Recursive key-case transformer.

The transformer rebuilds mappings with converted keys. It is shallow by
default, follows nested mappings and sequences when ``deep`` is set, leaves
excluded keys alone and stops descending at configured paths.

Only mappings and non-string sequences are containers. Everything else,
including compiled patterns, exceptions and datetimes, is returned as-is.
Input is never mutated; every container on the way is rebuilt.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from casekit.casing.cache import ConversionCache
from casekit.casing.conversion import camel_case
from casekit.casing.options import CaseOptions
from casekit.core.types import KeyPath


def is_container(value: object) -> bool:
    """Whether the transformer descends into ``value``."""
    return isinstance(value, Mapping) or _is_sequence(value)


def _is_sequence(value: object) -> bool:
    return isinstance(value, (list, tuple))


def _rebuild(
    original: Sequence[Any], items: Iterable[Any]
) -> list[Any] | tuple[Any, ...]:
    return tuple(items) if isinstance(original, tuple) else list(items)


class KeyCaseTransformer:
    """Converts mapping keys between naming conventions.

    Args:
        cache: Conversion cache to memoize key conversions in. A private
            cache with the default bounds is created when omitted.

    Example:
        >>> transformer = KeyCaseTransformer()
        >>> transformer.convert_keys({"foo_bar": {"baz_qux": 1}}, deep=True)
        {'fooBar': {'bazQux': 1}}
    """

    def __init__(self, cache: ConversionCache | None = None) -> None:
        self.cache = cache if cache is not None else ConversionCache()

    def convert_keys(
        self,
        value: Any,
        options: CaseOptions | None = None,
        **overrides: Any,
    ) -> Any:
        """Convert the keys of a mapping, or of every mapping in a sequence.

        Args:
            value: A mapping, a sequence of mappings, or any other value.
            options: Conversion options. Defaults to shallow camelCase.
            **overrides: Individual option fields, applied on top of
                ``options``.

        Returns:
            Any: A new value of the same container shape, or ``value``
            itself when it is not a container.
        """
        if options is None:
            options = CaseOptions(**overrides)
        elif overrides:
            options = CaseOptions.model_validate({**dict(options), **overrides})

        stop_paths = options.stop_path_set()

        # Each element of a top-level sequence is its own root
        if _is_sequence(value):
            roots = (self._transform(item, (), options, stop_paths) for item in value)
            return _rebuild(value, roots)
        return self._transform(value, (), options, stop_paths)

    def convert_key(self, key: str, options: CaseOptions) -> str:
        """Convert a single key through the cache.

        Keys shorter than the cache's length limit are memoized per case mode;
        longer keys are recomputed on every call.
        """
        cache_key = ConversionCache.make_key(
            key,
            pascal_case=options.pascal_case,
            preserve_consecutive_uppercase=options.preserve_consecutive_uppercase,
        )
        converted = self.cache.get(cache_key)
        if converted is None:
            converted = camel_case(
                key,
                pascal_case=options.pascal_case,
                preserve_consecutive_uppercase=options.preserve_consecutive_uppercase,
            )
            self.cache.put(cache_key, converted)
        return converted

    def _transform(
        self,
        value: Any,
        parent_path: KeyPath,
        options: CaseOptions,
        stop_paths: frozenset[KeyPath],
    ) -> Any:
        if isinstance(value, Mapping):
            return self._transform_mapping(value, parent_path, options, stop_paths)
        if _is_sequence(value):
            # Sequence items share the path of the key holding the sequence
            return _rebuild(
                value,
                (
                    self._transform(item, parent_path, options, stop_paths)
                    for item in value
                ),
            )
        return value

    def _transform_mapping(
        self,
        mapping: Mapping[Any, Any],
        parent_path: KeyPath,
        options: CaseOptions,
        stop_paths: frozenset[KeyPath],
    ) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        for key, value in mapping.items():
            if not isinstance(key, str):
                result[key] = value
                continue

            path = (*parent_path, key)
            output_value = value
            if options.deep and is_container(value) and path not in stop_paths:
                output_value = self._transform(value, path, options, stop_paths)

            output_key = key
            if not options.is_excluded(key):
                output_key = self.convert_key(key, options)

            # Colliding output keys: last write wins
            result[output_key] = output_value
        return result


_default_transformer = KeyCaseTransformer()


def get_default_transformer() -> KeyCaseTransformer:
    """Return the process-wide transformer and its shared cache."""
    return _default_transformer


def convert_keys(
    value: Any, options: CaseOptions | None = None, **overrides: Any
) -> Any:
    """Convert keys using the process-wide transformer.

    Args:
        value: A mapping, a sequence of mappings, or any other value.
        options: Conversion options. Defaults to shallow camelCase.
        **overrides: Individual option fields, applied on top of ``options``.

    Returns:
        Any: The converted value.

    Examples:
        >>> convert_keys({"foo_bar": True})
        {'fooBar': True}
        >>> convert_keys([{"foo_bar": True}], pascal_case=True)
        [{'FooBar': True}]
    """
    return _default_transformer.convert_keys(value, options, **overrides)
