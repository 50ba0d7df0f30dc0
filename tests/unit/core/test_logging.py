"""Tests for binstage.core.logging."""

from __future__ import annotations

import io
import logging

from binstage.core.logging import configure_logging, get_logger


class TestGetLogger:
    def test_namespaces_foreign_names(self) -> None:
        assert get_logger("tests.something").name == "binstage.tests.something"

    def test_keeps_package_names(self) -> None:
        assert get_logger("binstage.provision").name == "binstage.provision"


class TestConfigureLogging:
    def test_default_level_is_warning(self) -> None:
        configure_logging(stream=io.StringIO())
        assert logging.getLogger("binstage").level == logging.WARNING

    def test_flag_levels(self) -> None:
        configure_logging(debug=True, stream=io.StringIO())
        assert logging.getLogger("binstage").level == logging.DEBUG
        configure_logging(verbose=True, stream=io.StringIO())
        assert logging.getLogger("binstage").level == logging.INFO
        configure_logging(quiet=True, verbose=True, stream=io.StringIO())
        assert logging.getLogger("binstage").level == logging.ERROR

    def test_reconfigure_replaces_handler(self) -> None:
        first, second = io.StringIO(), io.StringIO()
        configure_logging(verbose=True, stream=first)
        configure_logging(verbose=True, stream=second)

        get_logger("binstage.test").info("hello")

        assert first.getvalue() == ""
        assert "hello" in second.getvalue()
        assert len(logging.getLogger("binstage").handlers) == 1
