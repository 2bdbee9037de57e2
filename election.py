import logging

from data_models import SECONDS_PER_HOUR, ElectionWindow

logger = logging.getLogger(__name__)


class ElectionClock:
    """Holds the voting window. A never-configured clock (0, 0) is always closed."""

    def __init__(self):
        self._window = ElectionWindow()

    @property
    def window(self):
        return self._window

    @property
    def start_time(self):
        return self._window.start_time

    @property
    def end_time(self):
        return self._window.end_time

    def configure(self, duration_hours, now):
        # Each call replaces the previous window entirely
        if duration_hours <= 0:
            raise ValueError("election duration must be positive")
        self._window = ElectionWindow(now, now + duration_hours * SECONDS_PER_HOUR)
        logger.info("election window set to (%s, %s)", self._window.start_time, self._window.end_time)
        return self._window

    def restore(self, window):
        self._window = window

    def is_open(self, now):
        return self._window.contains(now)

    def remaining(self, now):
        if not self.is_open(now):
            return 0.0
        return self._window.end_time - now
