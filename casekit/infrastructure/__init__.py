"""Infrastructure layer for database integration.

This package holds everything that talks to a database or to a metrics
backend:

- **Connection handling**: Descriptors, URL building and redacted display
- **Configuration**: Engine options plus response and identifier hooks that
  apply the key-case transformer
- **Migrations**: Alembic upgrades with retry while the database starts up
- **Metrics**: Pool gauges and query duration histograms via OpenTelemetry
"""
