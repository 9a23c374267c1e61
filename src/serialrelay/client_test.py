import threading
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, calling, is_, raises
from websockets.exceptions import ConnectionClosedError
from websockets.frames import Close, CloseCode

from serialrelay.broadcaster import DeliveryError
from serialrelay.client import ClientSession
from serialrelay.support.async_loop_test import debug_timeout, wait_until


class ClientSessionTest(unittest.TestCase):

    def setUp(self):
        self.connection = Mock()
        self.connection.remote_address = ("127.0.0.1", 5000)
        self.on_failure = Mock()

    def test_deliver_queues_without_sending(self):
        sut = ClientSession(self.connection, self.on_failure, max_pending=2)
        sut.deliver("a")
        assert_that(sut.pending, is_(1))
        self.connection.send.assert_not_called()

    def test_deliver_to_full_queue_fails(self):
        sut = ClientSession(self.connection, self.on_failure, max_pending=1)
        sut.deliver("a")
        assert_that(calling(sut.deliver).with_args("b"), raises(DeliveryError))

    def test_deliver_to_closed_session_fails(self):
        sut = ClientSession(self.connection, self.on_failure)
        sut.close()
        assert_that(calling(sut.deliver).with_args("a"), raises(DeliveryError, "closed"))

    def test_loop_sends_next_message(self):
        sut = ClientSession(self.connection, self.on_failure)
        sut.deliver("hello")
        sut.loop()
        self.connection.send.assert_called_once_with("hello")

    def test_send_failure_stops_and_reports(self):
        error = ConnectionClosedError(Close(CloseCode.ABNORMAL_CLOSURE, ""), None)
        self.connection.send.side_effect = error
        sut = ClientSession(self.connection, self.on_failure)
        sut.deliver("hello")
        sut.loop()
        self.on_failure.assert_called_once_with(sut, error)
        assert_that(sut.running(), is_(False))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_sends_in_order_on_background_thread(self):
        sent = []
        self.connection.send.side_effect = sent.append
        sut = ClientSession(self.connection, self.on_failure, poll_interval=0.05)
        sut.start()
        for text in ("1", "2", "3"):
            sut.deliver(text)
        assert_that(wait_until(lambda: len(sent) == 3), is_(True))
        sut.close()
        assert_that(wait_until(lambda: self.connection.close.called), is_(True))
        assert_that(sent, is_(["1", "2", "3"]))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_slow_client_does_not_block_delivery(self):
        release = threading.Event()
        self.connection.send.side_effect = lambda text: release.wait()
        sut = ClientSession(self.connection, self.on_failure, max_pending=2, poll_interval=0.05)
        sut.start()
        sut.deliver("stuck")
        assert_that(wait_until(lambda: self.connection.send.called), is_(True))
        sut.deliver("a")
        sut.deliver("b")
        assert_that(calling(sut.deliver).with_args("c"), raises(DeliveryError))
        release.set()
        sut.close()

    def test_str_names_the_remote_address(self):
        sut = ClientSession(self.connection)
        assert_that(str(sut), is_("client ('127.0.0.1', 5000)"))
