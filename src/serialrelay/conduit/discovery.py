"""
Polling discovery of attached devices.

Each call to update() lists the devices present now and compares them with the devices found
by the previous call. A device that appeared yields a ResourceAvailableEvent and one that went
away a ResourceUnavailableEvent. A device replaced under the same key yields both, the
unavailable event first.
"""
import logging

from serialrelay.support.events import EventSource
from serialrelay.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)


class ResourceEvent(CommonEqualityMixin):
    """
    :param source: the discovery that found the change
    :param key: the device's name, e.g. COM3
    :param resource: the details of the device
    """

    def __init__(self, source, key, resource):
        self.source = source
        self.key = key
        self.resource = resource

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.key)


class ResourceAvailableEvent(ResourceEvent):
    pass


class ResourceUnavailableEvent(ResourceEvent):
    pass


class PolledResourceDiscovery:
    """
    Finds the changes in the available devices each time update() is called.

    Subclasses implement _fetch_available(), returning the present devices keyed by name. They
    may also override _is_allowed() to ignore some devices, and _same_device() to decide when a
    device under an existing key has been replaced.
    """

    def __init__(self):
        self.listeners = EventSource()
        self.previous = {}

    def _fetch_available(self) -> dict:
        return {}

    def _is_allowed(self, key, resource) -> bool:
        return True

    def _same_device(self, current, previous) -> bool:
        return current == previous

    def _changed_events(self, available: dict) -> list:
        events = []
        for key in sorted(set(self.previous) | set(available), key=str):
            before = self.previous.get(key)
            after = available.get(key)
            if before is not None and after is not None and self._same_device(after, before):
                continue
            if before is not None:
                logger.info("device removed: %s" % (key,))
                events.append(ResourceUnavailableEvent(self, key, before))
            if after is not None:
                logger.info("device found: %s" % (key,))
                events.append(ResourceAvailableEvent(self, key, after))
        return events

    def update(self) -> list:
        """
        Fetches the devices present now, notifies the listeners of each change since the last
        update and returns the changes.
        """
        available = {k: v for k, v in self._fetch_available().items() if self._is_allowed(k, v)}
        events = self._changed_events(available)
        self.previous = available
        self.listeners.fire_all(events)
        return events

    @property
    def keys(self) -> list:
        """ the names of the devices found by the last update, sorted """
        return sorted(self.previous)
