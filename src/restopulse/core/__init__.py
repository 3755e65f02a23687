"""Framework-independent runtime metrics core."""
