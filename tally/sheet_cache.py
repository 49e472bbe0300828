from __future__ import annotations

from concurrent.futures import Future
import logging
import threading
from typing import Callable, Optional

from tally.vote_tally import VoteTally


logger = logging.getLogger(__name__)


class VoteSheetCache:
    """
    Session-wide memo of loaded tallies, keyed by sheet key.

    The key includes the cache-busting `?v=` parameter, so bumping the
    version forces a fresh fetch. Only one load per key runs at a time;
    other callers for that key wait for its result. Failed loads are never
    stored, and a failed refresh leaves the previous tally in place.
    """

    def __init__(self, loader: Callable[[str], VoteTally]) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._results: dict[str, VoteTally] = {}
        self._inflight: dict[str, Future[VoteTally]] = {}

    def get(self, key: str) -> VoteTally:
        return self._load(key, force=False)

    def refresh(self, key: str) -> VoteTally:
        return self._load(key, force=True)

    def last_good(self, key: str) -> Optional[VoteTally]:
        with self._lock:
            return self._results.get(key)

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._results.clear()
            else:
                self._results.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._results)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._results

    def _load(self, key: str, force: bool) -> VoteTally:
        with self._lock:
            if not force and key in self._results:
                logger.debug("Cache hit for %s", key)
                return self._results[key]
            future = self._inflight.get(key)
            owner = future is None
            if future is None:
                future = Future()
                self._inflight[key] = future

        if not owner:
            logger.debug("Waiting on in-flight load of %s", key)
            return future.result()

        try:
            tally = self._loader(key)
        except BaseException as exc:
            # Waiters must be released even on KeyboardInterrupt / SystemExit.
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(exc)
            logger.warning("Load of %s failed: %r", key, exc)
            raise

        with self._lock:
            self._results[key] = tally
            self._inflight.pop(key, None)
        future.set_result(tally)
        return tally
