"""
Thread-per-stage pipeline with blocking hand-off channels.

A stage is any callable returning an iterable. Channel arguments are consumed
as the stage's inputs, and whatever the stage yields is put on its output
channel. Wiring looks like:

    with Pipeline() as pipeline:
        users = pipeline.add("list-users", list_users, client)
        tasks = pipeline.add("list-user-policies", resolve_user_policies, client, users)
        for task in tasks:
            ...
"""
import logging
import queue
import threading
from typing import NamedTuple

from .errors import PipelineError

logger = logging.getLogger(__name__)

_CLOSED = object()


class StageFailure(NamedTuple):
    stage: str
    error: Exception


class Channel:
    """
    A bounded queue between stages with an explicit end of stream.

    The channel closes once each of its writers has called close(). A reader
    that stops early calls abandon(), after which put() refuses new items and
    the rest of the stream is drained in the background, so writers never
    block on a reader that has gone away.
    """

    def __init__(self, name, writers=1, capacity=1):
        self.name = name
        self._queue = queue.Queue(maxsize=capacity)
        self._open_writers = writers
        self._abandoned = threading.Event()

    @property
    def abandoned(self):
        return self._abandoned.is_set()

    def put(self, item):
        """Hand an item to the reader. Returns False once the reader has gone away."""
        if self._abandoned.is_set():
            return False
        self._queue.put(item)
        return True

    def close(self):
        """Mark the end of this writer's stream."""
        self._queue.put(_CLOSED)

    def abandon(self):
        """Stop accepting items and drain the rest of the stream in the background."""
        if self._abandoned.is_set():
            return
        self._abandoned.set()
        if self._open_writers:
            threading.Thread(target=self._drain, name=f"{self.name}-drain", daemon=True).start()

    def _drain(self):
        for _ in self:
            pass

    def __iter__(self):
        while self._open_writers:
            item = self._queue.get()
            if item is _CLOSED:
                self._open_writers -= 1
                continue
            yield item

    def __repr__(self):
        return f"<Channel {self.name}>"


class Pipeline:
    """Starts each stage on its own thread and wires them with channels."""

    def __init__(self, capacity=1):
        self.capacity = capacity
        self.failures = []
        self._threads = []
        self._channels = []
        self._consumed = set()

    def add(self, name, stage, *args, **kwargs):
        """
        Start a stage and return its output channel.

        Args:
            name (str): Stage name used for thread names and diagnostics
            stage: Callable returning an iterable of output items
            *args: Positional arguments; Channel instances are the stage inputs
            **kwargs: Keyword arguments passed through to the stage

        Returns:
            Channel: The stage output
        """
        outbound = self._channel(name)
        inbound = [arg for arg in args if isinstance(arg, Channel)]
        inbound += [arg for arg in kwargs.values() if isinstance(arg, Channel)]
        self._consumed.update(id(channel) for channel in inbound)
        self._start(name, self._run_stage, name, stage, args, kwargs, outbound, inbound)
        return outbound

    def merge(self, name, *channels):
        """Interleave several channels into one that closes after all of them."""
        outbound = self._channel(name, writers=len(channels))
        self._consumed.update(id(channel) for channel in channels)
        for channel in channels:
            self._start(f"{name}<{channel.name}", self._forward, channel, outbound)
        return outbound

    def join(self):
        """Wait for every stage to finish and raise PipelineError if any of them failed."""
        for thread in self._threads:
            thread.join()
        if self.failures:
            raise PipelineError(self.failures)

    def abandon(self):
        """Abandon the outputs no stage reads; upstream stages unwind in turn."""
        for channel in self._channels:
            if id(channel) not in self._consumed:
                channel.abandon()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # The sink is done with whatever it did not read; let producers unwind
        self.abandon()
        if exc_type is not None:
            for thread in self._threads:
                thread.join()
            return False
        self.join()
        return False

    def _channel(self, name, writers=1):
        channel = Channel(name, writers=writers, capacity=self.capacity)
        self._channels.append(channel)
        return channel

    def _start(self, name, target, *args):
        thread = threading.Thread(target=target, args=args, name=name, daemon=True)
        self._threads.append(thread)
        thread.start()

    def _run_stage(self, name, stage, args, kwargs, outbound, inbound):
        logger.debug("stage %s started", name)
        try:
            for item in stage(*args, **kwargs):
                if not outbound.put(item):
                    logger.debug("stage %s output abandoned", name)
                    break
        except Exception as e:
            logger.error("stage %s failed: %s", name, e, exc_info=logger.isEnabledFor(logging.DEBUG))
            self.failures.append(StageFailure(name, e))
        finally:
            outbound.close()
            for channel in inbound:
                channel.abandon()
            logger.debug("stage %s finished", name)

    def _forward(self, inbound, outbound):
        try:
            for item in inbound:
                if not outbound.put(item):
                    break
        finally:
            outbound.close()
            inbound.abandon()
