import sys
import threading
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, is_, none, not_none, greater_than_or_equal_to

from serialrelay.support.async_loop import AsyncLoop


def debug_timeout(value):
    """
    Replaces the timeout value with a very large one if the tests are running under a debugger,
    so a breakpoint does not make the test time out.
    """
    return value if sys.gettrace() is None else 100000


def wait_until(predicate, timeout=1.0, interval=0.01):
    """ polls the predicate until it is true or the timeout elapses. Returns the last result. """
    event = threading.Event()
    waited = 0
    while not predicate():
        if waited >= timeout:
            return False
        event.wait(interval)
        waited += interval
    return True


class CallingLoop(AsyncLoop):
    """ calls fn on each iteration """

    def __init__(self, fn, name=None):
        super().__init__(name=name)
        self.fn = fn

    def loop(self):
        self.fn()


class AsyncLoopTest(unittest.TestCase):

    def test_construction(self):
        sut = CallingLoop(Mock(), name="loop")
        assert_that(sut.name, is_("loop"))
        assert_that(sut.background_thread, is_(none()))
        assert_that(sut.running(), is_(True))

    def test_loop_must_be_implemented(self):
        sut = AsyncLoop()
        sut.exception_handler = Mock()
        sut._guarded(sut.loop)
        assert_that(sut.exception_handler.call_args[0][0], is_(NotImplementedError))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_runs_loop_until_stopped(self):
        called = threading.Event()
        fn = Mock(side_effect=lambda: called.set())
        sut = CallingLoop(fn, name="loop")
        sut.start()
        assert_that(sut.background_thread, is_(not_none()))
        called.wait()
        sut.stop()
        assert_that(sut.background_thread, is_(none()))
        count = fn.call_count
        assert_that(count, is_(greater_than_or_equal_to(1)))
        assert_that(fn.call_count, is_(count))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_start_twice_has_no_effect(self):
        sut = CallingLoop(lambda: sut.stop_event.wait(0.01))
        sut.start()
        thread = sut.background_thread
        sut.start()
        assert_that(sut.background_thread, is_(thread))
        sut.stop()

    @timeout_decorator.timeout(debug_timeout(2))
    def test_exceptions_are_handled_and_the_loop_continues(self):
        calls = []

        def fn():
            calls.append(1)
            if len(calls) == 1:
                raise ValueError("boom")
            sut.stop(wait=False)

        sut = CallingLoop(fn)
        sut.exception_handler = Mock()
        sut.start()
        assert_that(wait_until(lambda: len(calls) == 2), is_(True))
        assert_that(sut.exception_handler.call_count, is_(1))
        assert_that(sut.exception_handler.call_args[0][0], is_(ValueError))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_startup_and_shutdown_are_called(self):
        sut = CallingLoop(Mock())
        sut.startup = Mock()
        shutdown = threading.Event()
        sut.shutdown = Mock(side_effect=lambda: shutdown.set())
        sut.start()
        sut.stop()
        shutdown.wait()
        sut.startup.assert_called_once_with()
        sut.shutdown.assert_called_once_with()

    @timeout_decorator.timeout(debug_timeout(2))
    def test_stop_from_own_thread_does_not_join(self):
        stopped = threading.Event()

        def fn():
            sut.stop()
            stopped.set()

        sut = CallingLoop(fn)
        sut.start()
        stopped.wait()
        assert_that(sut.running(), is_(False))

    def test_stop_before_start(self):
        sut = CallingLoop(Mock())
        sut.stop()
        assert_that(sut.running(), is_(False))
