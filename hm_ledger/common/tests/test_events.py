import pytest
from structlog.testing import capture_logs

from hm_ledger.common.events import publish, publish_on_commit, subscribe, unsubscribe


def test_failing_subscriber_does_not_stop_others():
    seen = []

    def broken(payload):
        raise RuntimeError("mailer down")

    def recorder(payload):
        seen.append(payload["bill_id"])

    subscribe("test.thing_happened")(broken)
    subscribe("test.thing_happened")(recorder)
    try:
        with capture_logs() as logs:
            publish("test.thing_happened", {"bill_id": "b-1"})
    finally:
        unsubscribe("test.thing_happened", broken)
        unsubscribe("test.thing_happened", recorder)

    assert seen == ["b-1"]
    failures = [e for e in logs if e["event"] == "event_subscriber_failed"]
    assert failures[0]["handler"] == "broken"
    assert failures[0]["log_level"] == "error"


def test_subscribe_twice_registers_once():
    calls = []

    def handler(payload):
        calls.append(payload)

    subscribe("test.once")(handler)
    subscribe("test.once")(handler)
    try:
        publish("test.once", {})
    finally:
        unsubscribe("test.once", handler)

    assert calls == [{}]


@pytest.mark.django_db
def test_publish_on_commit_waits_for_commit(django_capture_on_commit_callbacks):
    calls = []

    def handler(payload):
        calls.append(payload)

    subscribe("test.committed")(handler)
    try:
        with django_capture_on_commit_callbacks(execute=True):
            publish_on_commit("test.committed", {"n": 1})
            assert calls == []
    finally:
        unsubscribe("test.committed", handler)

    assert calls == [{"n": 1}]
