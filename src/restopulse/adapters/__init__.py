"""Adapters connecting the metrics core to frameworks and external systems."""
