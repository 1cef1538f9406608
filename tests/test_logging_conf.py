"""Tests for log formatting."""
import logging

from plotsync.logging_conf import LOG_FORMAT, QueueContextFilter


def _render(**extra):
    record = logging.LogRecord("plotsync", logging.INFO, __file__, 1, "Queued item", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    QueueContextFilter().filter(record)
    return logging.Formatter("%(message)s%(queue_context)s").format(record)


def test_no_context():
    assert _render() == "Queued item"


def test_queue_and_entry():
    assert _render(queue="maechaem_offline_queue", entry_id="abc") == (
        "Queued item [queue=maechaem_offline_queue entry=abc]"
    )


def test_format_includes_context_field():
    assert "%(queue_context)s" in LOG_FORMAT
