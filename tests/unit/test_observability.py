"""Unit tests for logging setup."""

import logging
from unittest.mock import patch

from rich.logging import RichHandler

from blueprints.observability import console, setup_logging


@patch("blueprints.observability.logging.basicConfig")
def test_setup_logging(mock_basic_config):
    """Test logging is routed through a Rich handler on stderr."""
    setup_logging("debug")

    kwargs = mock_basic_config.call_args.kwargs
    assert kwargs["level"] == logging.DEBUG
    assert kwargs["force"] is True
    (handler,) = kwargs["handlers"]
    assert isinstance(handler, RichHandler)
    assert handler.console is console
    assert console.stderr is True


@patch("blueprints.observability.logging.basicConfig")
def test_setup_logging_unknown_level(mock_basic_config):
    setup_logging("not-a-level")

    assert mock_basic_config.call_args.kwargs["level"] == logging.INFO
