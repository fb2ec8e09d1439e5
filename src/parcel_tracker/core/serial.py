#!/usr/bin/env python3
"""
Serialized Write Access

SerialWriter admits one writer at a time, strictly in arrival order.
A plain threading.Lock gives no ordering guarantee between waiters, so each
caller takes a ticket and waits until the ticket is being served.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class SerialWriter:
    """
    FIFO single-writer queue.

    Usage:
        writer = SerialWriter()
        with writer.turn():
            ...  # read-modify-write

    Turns are not reentrant: requesting a turn while holding one from the
    same thread raises RuntimeError instead of deadlocking.
    """

    def __init__(self, name: str = "store"):
        self.name = name
        self._condition = threading.Condition()
        self._next_ticket = 0
        self._now_serving = 0
        self._holder: int | None = None

    @property
    def pending(self) -> int:
        """Number of writers holding or waiting for a turn."""
        with self._condition:
            return self._next_ticket - self._now_serving

    @contextmanager
    def turn(self) -> Iterator[int]:
        """
        Wait for this caller's turn and hold it for the duration of the block.

        Yields:
            The ticket number, in arrival order
        """
        me = threading.get_ident()
        with self._condition:
            if self._holder == me:
                raise RuntimeError(f"{self.name}: nested write turn requested by the holding thread")
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._now_serving:
                self._condition.wait()
            self._holder = me

        logger.debug("%s: writer ticket %d acquired", self.name, ticket)
        try:
            yield ticket
        finally:
            with self._condition:
                self._holder = None
                self._now_serving += 1
                self._condition.notify_all()
            logger.debug("%s: writer ticket %d released", self.name, ticket)
