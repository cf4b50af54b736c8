from collections import defaultdict, deque
from typing import Callable, Deque, Dict, List, Type

from .settings import logger


class OutlineEvent:
    pass


class ServerEvent(OutlineEvent):
    def __init__(self, server):
        self.server = server

    def __repr__(self):
        return f"{type(self).__name__}({getattr(self.server, 'id', self.server)!r})"


class ServerConnected(ServerEvent):
    pass


class ServerDisconnected(ServerEvent):
    pass


class ServerReconnecting(ServerEvent):
    pass


Listener = Callable[[OutlineEvent], None]


class EventQueue:
    """
    Queue of domain events. Events enqueued before `start_publishing()` are
    held back and delivered, in order, once publishing starts.
    """

    def __init__(self):
        self._queue: Deque[OutlineEvent] = deque()
        self._listeners: Dict[Type[OutlineEvent], List[Listener]] = defaultdict(list)
        self._started = False
        self._publishing = False

    def subscribe(self, event_type: Type[OutlineEvent], listener: Listener):
        self._listeners[event_type].append(listener)

    def enqueue(self, event: OutlineEvent):
        self._queue.append(event)
        if self._started:
            self._publish_queued_events()

    def start_publishing(self):
        self._started = True
        self._publish_queued_events()

    def _publish_queued_events(self):
        # A listener may enqueue more events; the outer loop drains them.
        if self._publishing:
            return
        self._publishing = True
        try:
            while self._queue:
                event = self._queue.popleft()
                listeners = self._listeners.get(type(event))
                if not listeners:
                    logger.debug(f"Dropping event with no listeners: {event!r}")
                    continue
                for listener in listeners:
                    listener(event)
        finally:
            self._publishing = False
