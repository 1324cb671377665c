"""Deadline-bounded HTTP requests for the image path.

One wall-clock deadline covers the whole exchange, headers and body
(``requests`` applies ``timeout`` per socket read only). The request runs on
a worker thread and its response is closed when the deadline passes.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from .errors import ImageServiceError, ImageTimeoutError, RateLimitedError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class FetchResult:
    status_code: int
    content_type: str
    content: bytes

    def json(self) -> Dict[str, Any]:
        return json.loads(self.content.decode("utf-8"))


def _error_message(content: bytes, default: str) -> str:
    try:
        data = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return default
    if isinstance(data, dict):
        for field in ("error", "detail"):
            if isinstance(data.get(field), str) and data[field].strip():
                return data[field]
    return default


class _Exchange:
    """One request running on a worker thread; the caller may cancel it."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.done = threading.Event()
        self.response: Optional[requests.Response] = None
        self.cancelled = False
        self.result: Optional[FetchResult] = None
        self.error: Optional[Exception] = None

    def attach(self, resp: requests.Response) -> bool:
        with self.lock:
            if self.cancelled:
                return False
            self.response = resp
            return True

    def cancel(self) -> None:
        with self.lock:
            self.cancelled = True
            resp = self.response
        if resp is not None:
            resp.close()


def _exchange(
    ex: _Exchange,
    session: requests.Session,
    method: str,
    url: str,
    timeout: float,
    clock: Callable[[], float],
    deadline: float,
    **kwargs: Any,
) -> FetchResult:
    try:
        resp = session.request(method, url, stream=True, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise ImageTimeoutError(timeout) from e
    except requests.RequestException as e:
        raise ImageServiceError(f"Image service unreachable: {e}") from e
    if not ex.attach(resp):
        # the caller gave up while the headers were still arriving
        resp.close()
        raise ImageTimeoutError(timeout)

    chunks = []
    try:
        if clock() >= deadline:
            raise ImageTimeoutError(timeout)
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if ex.cancelled or clock() >= deadline:
                raise ImageTimeoutError(timeout)
            if chunk:
                chunks.append(chunk)
    except ImageTimeoutError:
        raise
    except Exception as e:
        # read timeouts surface from iter_content as ConnectionError
        if ex.cancelled or isinstance(e, requests.Timeout) or clock() >= deadline:
            raise ImageTimeoutError(timeout) from e
        if not isinstance(e, requests.RequestException):
            raise
        raise ImageServiceError(f"Image download failed: {e}") from e
    finally:
        resp.close()

    body = b"".join(chunks)
    if resp.status_code == 429:
        raise RateLimitedError()
    if not resp.ok:
        message = _error_message(body, "Failed to generate image.")
        raise ImageServiceError(message, status_code=resp.status_code)
    content_type = resp.headers.get("Content-Type", "") or ""
    return FetchResult(status_code=resp.status_code, content_type=content_type, content=body)


def fetch(
    session: requests.Session,
    method: str,
    url: str,
    timeout: float,
    clock: Callable[[], float] = time.monotonic,
    **kwargs: Any,
) -> FetchResult:
    """Issue one request and return its body, or raise an ImageFetchError.

    The exchange runs on a daemon thread and the caller waits at most
    ``timeout`` seconds of wall-clock time, headers included. On expiry the
    response is closed (or closed as soon as it arrives) and
    ``ImageTimeoutError`` is raised. Never retries.
    """
    deadline = clock() + timeout
    ex = _Exchange()

    def worker() -> None:
        try:
            ex.result = _exchange(ex, session, method, url, timeout, clock, deadline, **kwargs)
        except Exception as e:
            ex.error = e
        finally:
            ex.done.set()

    threading.Thread(target=worker, name="image-fetch", daemon=True).start()
    if not ex.done.wait(timeout):
        ex.cancel()
        logger.warning("Image request to %s exceeded %ss, cancelling", url, timeout)
        raise ImageTimeoutError(timeout)
    if ex.error is not None:
        if isinstance(ex.error, ImageTimeoutError):
            logger.warning("Image request to %s exceeded %ss, cancelling", url, timeout)
        raise ex.error
    return ex.result
