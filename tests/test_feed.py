"""Tests for the in-process change feed."""

import logging

from agentlab.realtime.feed import ChangeEvent, ChangeFeed


class TestSubscribe:
    """Test subscription matching."""

    def test_delivers_to_table_subscribers(self):
        """Only subscribers of the event's table are called."""
        feed = ChangeFeed()
        experiments, tags = [], []
        feed.subscribe("experiments", experiments.append)
        feed.subscribe("tags", tags.append)

        event = ChangeEvent("experiments", "INSERT", "exp-1", {"goal": "g"})
        assert feed.publish(event) == 1
        assert experiments == [event]
        assert tags == []

    def test_filter_narrows_events(self):
        """Every filter key must match the payload."""
        feed = ChangeFeed()
        received = []
        feed.subscribe("experiments", received.append, filter={"folder_id": "f-1"})

        feed.publish(ChangeEvent("experiments", "UPDATE", "a", {"folder_id": "f-1"}))
        feed.publish(ChangeEvent("experiments", "UPDATE", "b", {"folder_id": "f-2"}))
        feed.publish(ChangeEvent("experiments", "DELETE", "c"))

        assert [e.record_id for e in received] == ["a"]

    def test_unsubscribe_stops_delivery(self):
        """No events after unsubscribe; unsubscribing twice is harmless."""
        feed = ChangeFeed()
        received = []
        subscription = feed.subscribe("tasks", received.append)
        subscription.unsubscribe()
        subscription.unsubscribe()

        feed.publish(ChangeEvent("tasks", "INSERT", "t-1"))
        assert received == []
        assert len(feed) == 0


class TestPublish:
    """Test delivery failure handling."""

    def test_failing_subscriber_does_not_block_others(self, caplog):
        """A raising callback is logged; later subscribers still receive."""
        feed = ChangeFeed()
        received = []

        def broken(event):
            raise RuntimeError("subscriber crashed")

        feed.subscribe("tasks", broken)
        feed.subscribe("tasks", received.append)

        with caplog.at_level(logging.ERROR, logger="agentlab.realtime.feed"):
            delivered = feed.publish(ChangeEvent("tasks", "UPDATE", "t-1"))

        assert delivered == 1
        assert len(received) == 1
        assert "Change feed subscriber failed" in caplog.text

    def test_callback_may_unsubscribe_during_delivery(self):
        """Unsubscribing inside a callback is safe."""
        feed = ChangeFeed()
        calls = []

        def once(event):
            calls.append(event)
            subscription.unsubscribe()

        subscription = feed.subscribe("folders", once)
        feed.publish(ChangeEvent("folders", "INSERT", "f-1"))
        feed.publish(ChangeEvent("folders", "INSERT", "f-2"))

        assert len(calls) == 1
