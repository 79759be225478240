"""Display utilities for cluster blueprints."""

from blueprints.display.tables import create_run_table

__all__ = ["create_run_table"]
