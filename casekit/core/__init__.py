"""Core package for functionality shared by every casekit layer.

- **config**: Centralized configuration management with environment support
- **constants**: Defaults and limits used across the package
- **exceptions**: Structured exception hierarchy with error codes
- **logging**: Structured logging on top of Loguru
- **observability**: OpenTelemetry metrics provider setup
- **types**: Type aliases for better code clarity
"""
