"""
Synchronous notification of events to registered handlers.
"""


class EventSource(object):
    """ Calls each registered handler with every event fired, in registration order, on the firing thread. """

    def __init__(self):
        self._handlers = []

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def __len__(self):
        return len(self._handlers)

    def add(self, handler):
        """ registers a handler. A handler already registered is not added twice. """
        if handler not in self._handlers:
            self._handlers.append(handler)
        return self

    def remove(self, handler):
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, event):
        for handler in self.handlers():
            handler(event)


class EventRecorder:
    """ A handler that keeps every event it receives, in order. """

    def __init__(self, source: EventSource=None):
        self.events = []
        if source is not None:
            source.add(self)

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, cls):
        return [e for e in self.events if isinstance(e, cls)]
