"""SQLite database reachability probe."""

import sqlite3
import time

import aiosqlite

from restopulse.core.models import ProbeResult


class SQLiteDatabaseProbe:
    """aiosqlite implementation of DatabaseProbePort.

    Opens a short-lived connection and runs ``SELECT 1``. The database file
    is opened read-only for file paths so a probe never creates an empty
    database where none exists.

    Args:
        db_path: Path to the database file, or ":memory:".
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    @property
    def db_path(self) -> str:
        return self._db_path

    def _connect(self) -> aiosqlite.Connection:
        if self._db_path == ":memory:":
            return aiosqlite.connect(":memory:")
        return aiosqlite.connect(f"file:{self._db_path}?mode=ro", uri=True)

    async def check(self) -> ProbeResult:
        """Run the probe query. Connection and query errors become ok=False."""
        started = time.perf_counter()
        try:
            async with self._connect() as db:
                async with db.execute("SELECT 1") as cursor:
                    await cursor.fetchone()
        except (sqlite3.Error, OSError) as exc:
            return ProbeResult(
                ok=False,
                latency_ms=_elapsed_ms(started),
                error=str(exc) or type(exc).__name__,
            )
        return ProbeResult(ok=True, latency_ms=_elapsed_ms(started))


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
