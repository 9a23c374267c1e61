"""
Event dispatch to plain callables, either on the firing thread or deferred to a consumer thread.
"""
from queue import Empty, Queue


class EventSource:
    """
    Calls each handler with the arguments given to fire(), on the firing thread and in the order
    the handlers were added.

    Handlers are added with += and removed with -=. The handler list is replaced rather than
    modified, so handlers may be added or removed while an event is being dispatched.
    """

    def __init__(self):
        self._handlers = []

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        self._handlers = self._handlers + [handler]
        return self

    def remove(self, handler):
        """
        Removes the handler. Handlers are compared by equality, so a bound method taken again
        from the same object removes the one added. A handler that was never added is ignored.
        """
        self._handlers = [h for h in self._handlers if h != handler]
        return self

    def fire(self, *args, **kwargs):
        self._dispatch(*args, **kwargs)

    def fire_all(self, events):
        for event in events:
            self.fire(event)

    def _dispatch(self, *args, **kwargs):
        for handler in self._handlers:
            handler(*args, **kwargs)


class QueuedEventSource(EventSource):
    """
    An event source whose fire() only queues the event. Queued events are dispatched by whichever
    thread calls publish() or publish_next(), in the order they were fired.
    """

    def __init__(self):
        super().__init__()
        self.event_queue = Queue()

    def fire(self, event):
        self.event_queue.put(event)

    def publish(self) -> int:
        """ dispatches the events queued so far. Returns how many there were. """
        count = 0
        while True:
            try:
                event = self.event_queue.get_nowait()
            except Empty:
                return count
            self._dispatch(event)
            count += 1

    def publish_next(self, timeout=None) -> bool:
        """
        Waits up to timeout seconds for an event and dispatches it.
        :return: False when no event was queued in time
        """
        try:
            event = self.event_queue.get(timeout=timeout)
        except Empty:
            return False
        self._dispatch(event)
        return True
