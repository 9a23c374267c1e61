import unittest
from unittest.mock import Mock, call

from hamcrest import assert_that, is_, empty

from serialrelay.support.events import EventSource, QueuedEventSource


class EventSourceTest(unittest.TestCase):

    def test_no_handlers(self):
        sut = EventSource()
        assert_that(sut._handlers, is_(empty()))
        sut.fire("ignored")

    def test_add_and_remove(self):
        sut = EventSource()
        handler = Mock()
        sut += handler
        assert_that(sut._handlers, is_([handler]))
        sut -= handler
        assert_that(sut._handlers, is_(empty()))
        sut.remove(handler)
        assert_that(sut._handlers, is_(empty()))

    def test_remove_bound_method(self):
        class Listener:
            def __init__(self):
                self.events = []

            def on_event(self, event):
                self.events.append(event)

        sut = EventSource()
        listener = Listener()
        sut += listener.on_event
        sut -= listener.on_event
        sut.fire("COM3")
        assert_that(listener.events, is_(empty()))

    def test_add_returns_source(self):
        sut = EventSource()
        assert_that(sut.add(Mock()), is_(sut))

    def test_fire_calls_handlers_in_order(self):
        sut = EventSource()
        order = []
        sut += lambda event, **kwargs: order.append(("first", event, kwargs))
        sut += lambda event, **kwargs: order.append(("second", event, kwargs))
        sut.fire("COM3", baud=9600)
        assert_that(order, is_([("first", "COM3", {"baud": 9600}), ("second", "COM3", {"baud": 9600})]))

    def test_fire_all(self):
        sut = EventSource()
        handler = Mock()
        sut += handler
        sut.fire_all(["a", "b"])
        assert_that(handler.call_args_list, is_([call("a"), call("b")]))

    def test_handler_removed_while_dispatching(self):
        sut = EventSource()
        second = Mock()
        sut += lambda event: sut.remove(second)
        sut += second
        sut.fire(1)
        second.assert_called_once_with(1)
        sut.fire(2)
        second.assert_called_once_with(1)


class QueuedEventSourceTest(unittest.TestCase):

    def setUp(self):
        self.sut = QueuedEventSource()
        self.handler = Mock()
        self.sut += self.handler

    def test_fire_only_queues(self):
        self.sut.fire("line")
        self.handler.assert_not_called()
        assert_that(self.sut.event_queue.qsize(), is_(1))

    def test_publish_dispatches_queued_events(self):
        self.sut.fire_all(["a", "b"])
        assert_that(self.sut.publish(), is_(2))
        assert_that(self.handler.call_args_list, is_([call("a"), call("b")]))
        assert_that(self.sut.event_queue.empty(), is_(True))

    def test_publish_nothing_queued(self):
        assert_that(self.sut.publish(), is_(0))
        self.handler.assert_not_called()

    def test_publish_next_one_at_a_time(self):
        self.sut.fire("a")
        self.sut.fire("b")
        assert_that(self.sut.publish_next(0), is_(True))
        self.handler.assert_called_once_with("a")
        assert_that(self.sut.publish_next(0), is_(True))
        assert_that(self.handler.call_args_list, is_([call("a"), call("b")]))

    def test_publish_next_times_out(self):
        assert_that(self.sut.publish_next(0.01), is_(False))
        self.handler.assert_not_called()
