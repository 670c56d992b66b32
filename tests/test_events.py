"""
Tests for the synchronous event channel.
"""

import logging

from rowmodel import EntityEvent, EventChannel, EventType


def test_handlers_run_in_subscription_order():
    channel = EventChannel()
    calls = []
    channel.subscribe(lambda event: calls.append("first"))
    channel.subscribe(lambda event: calls.append("second"))

    event = EntityEvent(EventType.DATA_UPDATED, field_name="amount")
    assert channel.publish(event) is event
    assert calls == ["first", "second"]


def test_failing_handler_is_logged_and_skipped(caplog):
    channel = EventChannel()
    calls = []

    def broken(event):
        raise RuntimeError("boom")

    channel.subscribe(broken)
    channel.subscribe(calls.append)

    with caplog.at_level(logging.WARNING, logger="rowmodel.core.events"):
        channel.publish(EntityEvent(EventType.DATA_UPDATED))

    assert len(calls) == 1
    assert "boom" in caplog.text


def test_subscription_by_event_type():
    channel = EventChannel()
    saved = []
    channel.subscribe(saved.append, EventType.SAVED)

    channel.publish(EntityEvent(EventType.DATA_UPDATED))
    channel.publish(EntityEvent(EventType.SAVED))

    assert [event.event_type for event in saved] == [EventType.SAVED]


def test_unsubscribe():
    channel = EventChannel()
    calls = []
    channel.subscribe(calls.append, EventType.SAVED)
    channel.subscribe(calls.append, EventType.REMOVED)

    channel.unsubscribe(calls.append, EventType.SAVED)
    assert len(channel) == 1

    channel.unsubscribe(calls.append)
    assert len(channel) == 0

    channel.publish(EntityEvent(EventType.REMOVED))
    assert calls == []


def test_events_have_identity_and_cancel_flag():
    first = EntityEvent(EventType.BEFORE_SAVE)
    second = EntityEvent(EventType.LIST_CHANGED)

    assert first.event_id != second.event_id
    assert first.cancelable
    assert not second.cancelable
    assert first.cancel is False
