"""casekit - key-case conversion and database setup glue.

casekit sits between application code and SQLAlchemy/Alembic, keeping the
snake_case world of the database and the camelCase world of the application
apart without hand-written mapping code.

Architecture Overview:
- **Casing Layer**: Recursive key-case transformer with a bounded LRU cache
- **Core Layer**: Configuration, logging, exceptions and metrics provider
- **Infrastructure Layer**: Engine configuration, migrations and pool metrics

The transformer is pure and synchronous; everything that touches a database
is async-first and built on SQLAlchemy's asyncio extension.
"""

from casekit.casing import CaseOptions, KeyCaseTransformer, convert_keys

__all__ = ["CaseOptions", "KeyCaseTransformer", "convert_keys"]
