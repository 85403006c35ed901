import logging

from rtsp_client.logger import BoundLogger, create_logger


def test_duck_typed_logger_receives_enabled_levels(recording_logger) -> None:
    logger = create_logger(logger=recording_logger, level="debug")
    logger.trace("hidden %d", 1)
    logger.debug("visible %d", 2)
    logger.error("failed", exc_info=True)

    assert recording_logger.records == [("debug", "visible 2"), ("error", "failed")]


def test_child_of_duck_typed_logger_shares_the_sink(recording_logger) -> None:
    child = create_logger(logger=recording_logger).child("tcp")
    child.warn("dropped %s", "frame")
    assert recording_logger.messages("warn") == ["dropped frame"]


def test_child_of_stdlib_logger_is_named_below_parent() -> None:
    parent = BoundLogger(logging.getLogger("rtsp_client.tests"), level="trace")
    child = parent.child("tcp")
    assert child.level == "trace"
    assert child._logger.name == "rtsp_client.tests.tcp"


def test_create_logger_reuses_bound_logger() -> None:
    bound = BoundLogger(level="warn")
    assert create_logger(logger=bound, level="trace") is bound
