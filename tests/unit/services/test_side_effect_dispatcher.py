from __future__ import annotations

import logging

from skillswap.orchestration import effects
from skillswap.services import dispatcher as side_effects
from skillswap.services.dispatcher import CeleryDispatcher, RecordingDispatcher


class FakeTask:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[dict] = []
        self.fail = fail

    def apply_async(self, **options):
        self.calls.append(options)
        if self.fail:
            raise ConnectionError("broker unavailable")


class ExplodingDispatcher(RecordingDispatcher):
    def notify(self, event, payload):
        raise RuntimeError("smtp down")


def test_recording_dispatcher_routes_by_kind():
    recorder = RecordingDispatcher()
    recorder.dispatch(
        (
            effects.notify(7, "bid_received", "New Bid", "body", project_id=1),
            effects.realtime(7, "bidUpdate", projectId=1),
            effects.message(3, 7, "hello", project_id=1, is_system=True),
        )
    )

    assert recorder.notified("bid_received") == [7]
    assert recorder.pushed("bidUpdate") == [7]
    assert recorder.messages == [
        {"sender_id": 3, "recipient_id": 7, "content": "hello", "project_id": 1, "is_system": True}
    ]


def test_failed_effect_is_logged_and_rest_still_run(caplog):
    dispatcher = ExplodingDispatcher()
    with caplog.at_level(logging.ERROR, logger="skillswap.services.dispatcher"):
        dispatcher.dispatch(
            (
                effects.notify(7, "bid_received", "New Bid", "body"),
                effects.realtime(7, "bidUpdate", projectId=1),
            )
        )

    assert dispatcher.pushed("bidUpdate") == [7]
    assert any(record.getMessage() == "side_effect.dispatch_failed" for record in caplog.records)


def test_celery_dispatcher_enqueues_with_expiry_and_no_retry(monkeypatch):
    deliver, push, post = FakeTask(), FakeTask(), FakeTask()
    monkeypatch.setattr(side_effects, "deliver_notification", deliver)
    monkeypatch.setattr(side_effects, "push_realtime_event", push)
    monkeypatch.setattr(side_effects, "post_message", post)

    CeleryDispatcher(timeout_seconds=3).dispatch(
        (
            effects.notify(7, "bid_accepted", "Bid Accepted", "body", bid_id=5),
            effects.realtime(7, "yourBidAccepted", bidId=5),
            effects.message(3, 7, "welcome", project_id=1),
        )
    )

    assert deliver.calls[0]["expires"] == 3
    assert deliver.calls[0]["retry"] is False
    assert deliver.calls[0]["kwargs"]["notification_type"] == "bid_accepted"
    assert deliver.calls[0]["kwargs"]["recipient_id"] == 7
    assert "recipient_id" not in deliver.calls[0]["kwargs"]["payload"]
    assert push.calls[0]["kwargs"] == {"event": "yourBidAccepted", "recipient_id": 7, "payload": {"bidId": 5}}
    assert post.calls[0]["kwargs"] == {
        "sender_id": 3,
        "recipient_id": 7,
        "content": "welcome",
        "project_id": 1,
        "is_system": False,
    }


def test_unreachable_broker_does_not_raise(monkeypatch):
    monkeypatch.setattr(side_effects, "deliver_notification", FakeTask(fail=True))
    CeleryDispatcher(timeout_seconds=1).dispatch((effects.notify(7, "bid_received", "t", "m"),))


def test_first_enqueue_failure_skips_the_rest_of_the_batch(monkeypatch, caplog):
    broker_down = FakeTask(fail=True)
    for name in ("deliver_notification", "push_realtime_event", "post_message"):
        monkeypatch.setattr(side_effects, name, broker_down)

    batch = [effects.notify(7, "bid_rejected", "Bid Rejected", "body", bid_id=n) for n in range(4)]
    batch.append(effects.realtime(7, "bidAcceptedUpdate", bidId=9))
    batch.append(effects.message(3, 7, "welcome"))
    with caplog.at_level(logging.WARNING, logger="skillswap.services.dispatcher"):
        CeleryDispatcher(timeout_seconds=5).dispatch(batch)

    assert len(broker_down.calls) == 1
    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("side_effect.dispatch_failed") == 1
    assert messages.count("side_effect.dispatch_skipped") == 5
