"""Tests for the console logging helper."""
from __future__ import annotations

import logging

from isoterrain.logging_config import configure_logging


def test_level_names_are_accepted():
    configure_logging("debug")
    assert logging.getLogger("isoterrain").level == logging.DEBUG
    configure_logging(logging.WARNING)
    assert logging.getLogger("isoterrain").level == logging.WARNING


def test_unknown_level_name_falls_back_to_info():
    configure_logging("chatty")
    assert logging.getLogger("isoterrain").level == logging.INFO
