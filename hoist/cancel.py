import threading
import time

from hoist.errors import DeployCancelled


class CancelToken:
    """
    Caller-supplied cancellation signal.

    Trips either when cancel() is called (e.g. on Ctrl-C) or once the optional
    timeout has elapsed. Long-running steps call check() before each network
    call or file, so nothing new is started after cancellation.
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self.deadline = None if timeout is None else time.monotonic() + timeout

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self._event.set()
            return True
        return False

    def check(self, during: str):
        if self.cancelled:
            if self.deadline is not None and time.monotonic() >= self.deadline:
                raise DeployCancelled(f"timed out before {during}")
            raise DeployCancelled(f"cancelled before {during}")
