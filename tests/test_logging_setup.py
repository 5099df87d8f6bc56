import logging

from rich.logging import RichHandler

from host_health.logging_setup import setup_logging


def test_installs_single_rich_handler():
    setup_logging("INFO")
    setup_logging("DEBUG")
    logger = logging.getLogger("host_health")
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RichHandler)
    assert logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_warning():
    setup_logging("chatty")
    assert logging.getLogger("host_health").level == logging.WARNING
