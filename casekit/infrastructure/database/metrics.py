"""Connection pool and query duration metrics.

Pool gauges are observable instruments: the meter provider's periodic reader
samples every tracked pool on each collection cycle, so sampling runs on the
reader's fixed export interval rather than on a timer owned here.

Pools are sampled through whichever accessors they expose:

- **SQLAlchemy QueuePool**: ``checkedout()`` and ``checkedin()``
- **asyncpg Pool**: ``get_size()`` and ``get_idle_size()``
- **tarn-style pools**: ``num_used()``, ``num_free()``,
  ``num_pending_acquires()`` and ``num_pending_creates()``

Pools exposing none of them are tracked but report no observations.
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Final

from opentelemetry import metrics
from opentelemetry.metrics import CallbackOptions, Meter, MeterProvider, Observation

METER_NAME: Final = "casekit.database"

POOL_USED: Final = "db_pool_used"
POOL_FREE: Final = "db_pool_free"
POOL_PENDING_ACQUIRES: Final = "db_pool_pending_acquires"
POOL_PENDING_CREATES: Final = "db_pool_pending_creates"
QUERY_DURATION: Final = "db_query_duration_seconds"


@dataclass(frozen=True, slots=True)
class PoolStats:
    """Point-in-time connection counts for one pool."""

    used: int
    free: int
    pending_acquires: int = 0
    pending_creates: int = 0


def _has(pool: object, *names: str) -> bool:
    return all(callable(getattr(pool, name, None)) for name in names)


def sample_pool(pool: object) -> PoolStats | None:
    """Read connection counts from a pool.

    Args:
        pool: A SQLAlchemy, asyncpg or tarn-style pool.

    Returns:
        PoolStats | None: The counts, or None when the pool exposes no
        supported accessors.
    """
    if _has(pool, "num_used", "num_free"):
        return PoolStats(
            used=pool.num_used(),  # type: ignore[attr-defined]
            free=pool.num_free(),  # type: ignore[attr-defined]
            pending_acquires=(
                pool.num_pending_acquires()  # type: ignore[attr-defined]
                if _has(pool, "num_pending_acquires")
                else 0
            ),
            pending_creates=(
                pool.num_pending_creates()  # type: ignore[attr-defined]
                if _has(pool, "num_pending_creates")
                else 0
            ),
        )

    if _has(pool, "checkedout", "checkedin"):
        return PoolStats(
            used=pool.checkedout(),  # type: ignore[attr-defined]
            free=pool.checkedin(),  # type: ignore[attr-defined]
        )

    if _has(pool, "get_size", "get_idle_size"):
        size = pool.get_size()  # type: ignore[attr-defined]
        idle = pool.get_idle_size()  # type: ignore[attr-defined]
        return PoolStats(used=size - idle, free=idle)

    return None


class DatabaseMetrics:
    """OpenTelemetry instruments for pool usage and query durations.

    Args:
        meter: Meter the instruments are created on.
    """

    def __init__(self, meter: Meter) -> None:
        self._pools: dict[str, object] = {}
        self._lock = threading.Lock()

        meter.create_observable_gauge(
            POOL_USED,
            callbacks=[self._observer(lambda stats: stats.used)],
            description="Number of connections in use",
        )
        meter.create_observable_gauge(
            POOL_FREE,
            callbacks=[self._observer(lambda stats: stats.free)],
            description="Number of idle connections",
        )
        meter.create_observable_gauge(
            POOL_PENDING_ACQUIRES,
            callbacks=[self._observer(lambda stats: stats.pending_acquires)],
            description="Number of callers waiting for a connection",
        )
        meter.create_observable_gauge(
            POOL_PENDING_CREATES,
            callbacks=[self._observer(lambda stats: stats.pending_creates)],
            description="Number of connections being opened",
        )
        self._query_duration = meter.create_histogram(
            QUERY_DURATION,
            unit="s",
            description="Duration of SQL queries, by SQL method",
        )

    def track_pool(self, pool: object, name: str = "default") -> None:
        """Start reporting a pool under the ``pool`` attribute ``name``."""
        with self._lock:
            self._pools[name] = pool

    def untrack_pool(self, name: str = "default") -> None:
        """Stop reporting a pool."""
        with self._lock:
            self._pools.pop(name, None)

    def record_query(self, method: str, duration_seconds: float) -> None:
        """Record one query's duration."""
        self._query_duration.record(duration_seconds, {"method": method})

    def _observer(
        self, read: Callable[[PoolStats], int]
    ) -> Callable[[CallbackOptions], Iterable[Observation]]:
        def observe(_options: CallbackOptions) -> Iterable[Observation]:
            with self._lock:
                pools = list(self._pools.items())
            observations = []
            for name, pool in pools:
                stats = sample_pool(pool)
                if stats is not None:
                    observations.append(Observation(read(stats), {"pool": name}))
            return observations

        return observe


class _MetricsState:
    """Holds the process-wide instrument set."""

    def __init__(self) -> None:
        self.metrics: DatabaseMetrics | None = None
        self.lock = threading.Lock()


_state = _MetricsState()


def register_metrics(meter_provider: MeterProvider | None = None) -> DatabaseMetrics:
    """Create the database instruments on a meter provider.

    Args:
        meter_provider: Provider to register with. The global provider is
            used when omitted.

    Returns:
        DatabaseMetrics: The instrument set, also returned afterwards by
        ``get_database_metrics``.
    """
    if meter_provider is None:
        meter = metrics.get_meter(METER_NAME)
    else:
        meter = meter_provider.get_meter(METER_NAME)

    database_metrics = DatabaseMetrics(meter)
    with _state.lock:
        _state.metrics = database_metrics
    return database_metrics


def get_database_metrics() -> DatabaseMetrics:
    """Return the registered instrument set, registering one if needed."""
    if _state.metrics is None:
        with _state.lock:
            if _state.metrics is None:
                _state.metrics = DatabaseMetrics(metrics.get_meter(METER_NAME))
    return _state.metrics


def reset_database_metrics() -> None:
    """Forget the registered instrument set. Used primarily for testing."""
    with _state.lock:
        _state.metrics = None


def pool_of(engine: Any) -> object:
    """Return the connection pool behind a sync or async engine."""
    sync_engine = getattr(engine, "sync_engine", engine)
    return sync_engine.pool
