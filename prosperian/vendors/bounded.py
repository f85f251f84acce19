"""Wall-clock bounded HTTP calls for the short enrichment and registry budgets."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)

# requests rejects a zero timeout
_MIN_SOCKET_TIMEOUT = 0.01


class Deadline:
    """Absolute expiry shared by every step of one bounded call (token refresh, retry...)."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.remaining() <= 0


def bounded_request(session: Any, method: str, url: str, deadline: Deadline, **kwargs: Any) -> requests.Response:
    """Send a request and read its whole body before ``deadline``.

    The socket timeout of requests only bounds each read, so the call runs on
    its own worker and the caller stops waiting at the deadline. A late
    response is closed, which drops its connection. Raises requests.Timeout
    when the deadline passes.
    """
    if deadline.expired():
        raise requests.Timeout(f"{method} {url}: {deadline.seconds}s budget already spent")

    lock = threading.Lock()
    state: Dict[str, Any] = {"response": None, "abandoned": False}

    def send() -> requests.Response:
        response = session.request(
            method,
            url,
            stream=True,
            timeout=max(deadline.remaining(), _MIN_SOCKET_TIMEOUT),
            **kwargs,
        )
        with lock:
            if state["abandoned"]:
                response.close()
                raise requests.Timeout(f"{method} {url}: response arrived after the deadline")
            state["response"] = response
        # read the body inside the bounded window
        _ = response.content
        return response

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bounded-request")
    future = executor.submit(send)
    executor.shutdown(wait=False)
    try:
        return future.result(timeout=deadline.remaining())
    except FutureTimeout:
        with lock:
            state["abandoned"] = True
            response = state["response"]
        if response is not None:
            response.close()
        logger.debug("%s %s abandoned after %ss", method, url, deadline.seconds)
        raise requests.Timeout(f"{method} {url}: no complete response within {deadline.seconds}s") from None
