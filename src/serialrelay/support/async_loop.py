"""
Background loops. The long running parts of the relay each run as an AsyncLoop on a daemon
thread: the supervising loop, the reader, the writer, the broadcaster, the port monitor and
each client's sender.
"""
import logging
import threading

logger = logging.getLogger(__name__)


class AsyncLoop:
    """
    Runs startup() once, then loop() until stopped, then shutdown(), on a daemon thread.

    An exception from any of these goes to exception_handler() and the thread carries on.
    Subclasses implement loop().

    :param name: the thread name
    :param log: the logger exceptions are reported to
    """

    def __init__(self, name=None, log=logger):
        self.name = name
        self.logger = log
        self.stop_event = threading.Event()
        self.background_thread = None
        self._lock = threading.Lock()

    def startup(self):
        pass

    def loop(self):
        raise NotImplementedError

    def shutdown(self):
        pass

    def exception_handler(self, e):
        self.logger.exception(e)

    def running(self) -> bool:
        return not self.stop_event.is_set()

    def start(self):
        """ starts the thread. Does nothing when it is already running. """
        with self._lock:
            if self.background_thread is not None:
                return
            self.background_thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self.background_thread.start()

    def stop(self, wait=True):
        """
        Asks the loop to finish once the current iteration returns.
        :param wait: block until the thread has exited. Has no effect on the loop's own thread.
        """
        self.stop_event.set()
        with self._lock:
            thread, self.background_thread = self.background_thread, None
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(self):
        self._guarded(self.startup)
        while self.running():
            self._guarded(self.loop)
        self._guarded(self.shutdown)
        logger.debug("%s finished" % (self.name or "loop",))

    def _guarded(self, step):
        try:
            step()
        except Exception as e:
            self.exception_handler(e)
