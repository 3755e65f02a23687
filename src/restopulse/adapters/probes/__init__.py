"""Database probe adapters implementing DatabaseProbePort."""

from restopulse.adapters.probes.sqlite import SQLiteDatabaseProbe

__all__ = ["SQLiteDatabaseProbe"]
