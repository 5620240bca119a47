"""Type aliases for dynamic data structures throughout the package.

The key-case transformer accepts arbitrary values and only understands a
handful of container shapes, so most of its signatures are necessarily loose.
These aliases give those loose signatures a name.
"""

from re import Pattern
from typing import Any

# A key is excluded from conversion when it equals a string matcher
# or when a pattern matcher finds a match anywhere in it
type KeyMatcher = str | Pattern[str]

# Explicit traversal path, one segment per mapping key
type KeyPath = tuple[str, ...]

# Context dictionary for error details and debugging information
type ErrorContext = dict[str, Any]

# Context dictionary for logging additional information
type LogContext = dict[str, Any]
