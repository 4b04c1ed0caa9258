"""Tests for the rich console logger."""

import io

from rich.console import Console

from sareporting.console import RichLogger


def make_logger(verbose=False):
    buf = io.StringIO()
    return RichLogger(console=Console(file=buf, width=120), verbose=verbose), buf


def test_levels_are_counted_and_printed():
    logger, buf = make_logger()
    logger.info("loaded [db]")
    logger.warn("no findings")
    logger.error("bad file")
    assert (logger.warn_count, logger.error_count) == (1, 1)
    output = buf.getvalue()
    assert "WARN" in output
    assert "loaded [db]" in output


def test_debug_requires_verbose():
    logger, buf = make_logger()
    logger.debug("hidden")
    assert "hidden" not in buf.getvalue()
    verbose, vbuf = make_logger(verbose=True)
    verbose.debug("shown")
    assert "shown" in vbuf.getvalue()
