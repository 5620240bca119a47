"""Key-case conversion for mappings and sequences of mappings.

- **conversion**: camelCase/PascalCase conversion and its snake_case inverse
- **cache**: Bounded, thread-safe LRU cache of converted keys
- **options**: The options record accepted by every conversion call
- **transformer**: The recursive transformer and the process-wide default
"""

from casekit.casing.cache import ConversionCache
from casekit.casing.conversion import camel_case, decamelize
from casekit.casing.options import CaseOptions
from casekit.casing.transformer import (
    KeyCaseTransformer,
    convert_keys,
    get_default_transformer,
    is_container,
)

__all__ = [
    "CaseOptions",
    "ConversionCache",
    "KeyCaseTransformer",
    "camel_case",
    "convert_keys",
    "decamelize",
    "get_default_transformer",
    "is_container",
]
