"""Core application constants."""

# Conversion cache limits
DEFAULT_CACHE_CAPACITY = 100_000
MAX_CACHED_KEY_LENGTH = 100  # keys this long or longer are never cached

# Key paths
PATH_SEPARATOR = "."

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"
REDACTED_PASSWORD = "****"
