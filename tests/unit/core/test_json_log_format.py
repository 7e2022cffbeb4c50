from __future__ import annotations

import json
import logging

from skillswap.core.logging_config import JsonFormatter
from skillswap.tasks.hooks import after_task


def _format(message: str, extra: dict) -> dict:
    record = logging.getLogger("skillswap.tests").makeRecord(
        "skillswap.tests", logging.INFO, __file__, 1, message, (), None, extra=extra
    )
    return json.loads(JsonFormatter().format(record))


def test_task_finish_keeps_user_and_finish_time():
    line = _format("task.finish", after_task("deliver_notification", {"user_id": 42, "bid_id": 7}, "succeeded"))

    assert line["event"] == "task.finish"
    assert line["user_id"] == "42"
    assert line["bid_id"] == "7"
    assert line["status"] == "succeeded"
    assert line["finished_at"]


def test_environment_and_backup_path_have_their_own_fields():
    started = _format("startup.config.validated", {"event": "startup.config.validated", "env": "production"})
    reset = _format("database.sqlite.reset_for_schema_mismatch", {"backup_path": "/tmp/skillswap.db.bak"})

    assert started["env"] == "production"
    assert "status" not in started
    assert reset["backup_path"] == "/tmp/skillswap.db.bak"


def test_unlisted_extras_are_dropped():
    line = _format("x", {"event": "x", "password": "hunter2"})
    assert "password" not in line
