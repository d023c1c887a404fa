"""
Trigger Module

Turns raw trigger edges into at most one run at a time. Edges closer
together than the debounce window are ignored, and so is any edge that
arrives while a run is still in progress.
"""

import time
import logging

# Get logger
logger = logging.getLogger('CellLocator')


class TriggerGate:
    def __init__(self, action, debounce=0.05, clock=time.monotonic):
        """
        Args:
            action: Callable run once per accepted edge
            debounce: Minimum seconds between accepted edges
            clock: Monotonic clock function
        """
        self.action = action
        self.debounce = debounce
        self.clock = clock
        self.busy = False
        self._last_edge = None

    def fire(self):
        """
        Handle one trigger edge.

        Returns:
            The action's return value, or None if the edge was dropped
        """
        now = self.clock()
        if self._last_edge is not None and now - self._last_edge < self.debounce:
            logger.debug("Trigger bounce ignored")
            return None
        self._last_edge = now

        if self.busy:
            logger.info("Run in progress, trigger ignored")
            return None

        self.busy = True
        try:
            return self.action()
        finally:
            self.busy = False
            self._last_edge = self.clock()
