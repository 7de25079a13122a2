import json
import logging

from otterscan_mcp.config import default_config
from otterscan_mcp.server import JsonFormatter


def test_logging_level_config():
    level = getattr(logging, default_config.log_level.upper(), logging.INFO)
    assert level in (
        logging.DEBUG,
        logging.INFO,
        logging.WARNING,
        logging.ERROR,
        logging.CRITICAL,
    )


def test_json_formatter_includes_tool_context():
    record = logging.LogRecord("otterscan_mcp.server", logging.WARNING, __file__, 1, "tool=%s", ("x",), None)
    record.tool = "get_transaction_trace"
    record.error = "Node unreachable"
    payload = json.loads(JsonFormatter().format(record))
    assert payload == {
        "level": "WARNING",
        "message": "tool=x",
        "name": "otterscan_mcp.server",
        "tool": "get_transaction_trace",
        "error": "Node unreachable",
    }
