"""Shared utilities for cluster blueprints."""
