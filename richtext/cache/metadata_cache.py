"""Link metadata cache with single-flight fetching.

Per key the cache moves through Absent -> Fetching -> Cached(fresh) ->
Cached(stale) -> Fetching(refresh); `invalidate` returns any state to Absent.

- At most one fetch per key is in flight. Concurrent readers of that key wait
  on the same future instead of fetching themselves.
- A fetch makes up to `max_attempts` attempts, sleeping base * phi**n between
  them. Each attempt is bounded by `fetch_timeout`, counted from the moment
  the fetcher is called. A call that overruns keeps its thread; the next
  attempt for that key waits on it again instead of calling the fetcher a
  second time.
- When every attempt fails, a `Metadata` with `error` set is cached for
  `failure_ttl`, so the next fetch happens only after that short TTL.
- A rolling failure ratio above `degraded_threshold` scales every TTL by
  `degraded_ttl_factor` until the ratio drops again.
- A caller that stops waiting (`wait=`) does not cancel the fetch; it still
  completes and populates the cache.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from richtext.cache.backoff import backoff_delay
from richtext.cache.entry import MAX_FAILURE_COUNT, CacheEntry, decode_entry, encode_entry
from richtext.cache.failure_stats import FailureSnapshot, FailureStats
from richtext.cache.stores import BaseCacheStore, InMemoryStore
from richtext.config import CacheConfig
from richtext.errors import CacheCorruptionError
from richtext.links.metadata_types import FetchCollaborator, FetchResult, Metadata, coerce_fetch_result
from richtext.links.url_utils import cache_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    stale_reads: int
    fetches: int
    attempts: int
    failures: FailureSnapshot


class MetadataCache:
    def __init__(
        self,
        fetcher: FetchCollaborator,
        *,
        store: Optional[BaseCacheStore] = None,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = (config or CacheConfig()).validate()
        self.store = store if store is not None else InMemoryStore(clock=clock)
        self._fetcher = fetcher
        self._clock = clock
        self._sleep = sleep
        cfg = self.config
        self._failures = FailureStats(
            window_size=cfg.window_size,
            min_samples=cfg.min_samples,
            threshold=cfg.degraded_threshold,
        )
        self._lock = threading.Lock()
        self._inflight: Dict[str, Future] = {}
        # keys invalidated while their fetch is in flight; cleared by _finish
        self._invalidated: Set[str] = set()
        # fetcher calls still running, at most one per key
        self._calls: Dict[str, Future] = {}
        self._counters = {"hits": 0, "misses": 0, "stale_reads": 0, "fetches": 0, "attempts": 0}
        self._fetch_pool = ThreadPoolExecutor(max_workers=cfg.max_workers, thread_name_prefix="rte-fetch")

    # -- public API --

    def key_for(self, url: str) -> str:
        return cache_key(url, self.config.key_prefix)

    def get(self, url: str, *, wait: Optional[float] = None) -> Metadata:
        """Return metadata for `url`, fetching it if absent or stale.

        `wait` bounds how long this caller blocks on a fetch. On timeout it
        gets the previous entry's value if there is one, otherwise a
        `Metadata` with error "pending"; the fetch keeps running.
        """
        found, pending, prior = self._lookup(url)
        if pending is None:
            return found
        return self._resolve(pending, prior, wait)

    def get_many(self, urls: Iterable[str], *, wait: Optional[float] = None) -> Dict[str, Metadata]:
        """Like `get` for several links; all missing links are fetched concurrently."""
        lookups: List[Tuple[str, Optional[Metadata], Optional[Future], Optional[CacheEntry]]] = []
        seen = set()
        for url in urls:
            if url in seen:
                continue
            seen.add(url)
            found, pending, prior = self._lookup(url)
            lookups.append((url, found, pending, prior))
        deadline = None if wait is None else self._clock() + wait
        out: Dict[str, Metadata] = {}
        for url, found, pending, prior in lookups:
            if pending is None:
                out[url] = found
                continue
            remaining = None if deadline is None else max(0.0, deadline - self._clock())
            out[url] = self._resolve(pending, prior, remaining)
        return out

    def peek(self, url: str) -> Optional[CacheEntry]:
        """Current entry for `url` (fresh or stale) without fetching."""
        return self._read_entry(self.key_for(url))

    def invalidate(self, url: str) -> bool:
        """Drop the entry for `url`. A fetch already in flight is not written back."""
        key = self.key_for(url)
        with self._lock:
            if key in self._inflight:
                self._invalidated.add(key)
        removed = bool(self.store.delete(key))
        logger.debug("invalidated %s (removed=%s)", key, removed)
        return removed

    def invalidate_many(self, urls: Iterable[str]) -> List[bool]:
        return [self.invalidate(u) for u in urls]

    @property
    def degraded(self) -> bool:
        return self._failures.degraded

    def stats(self) -> CacheStats:
        with self._lock:
            c = dict(self._counters)
        return CacheStats(failures=self._failures.snapshot(), **c)

    def close(self, *, wait: bool = True) -> None:
        self._fetch_pool.shutdown(wait=wait)

    def __enter__(self) -> "MetadataCache":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- read path --

    def _ttl_factor(self) -> float:
        return self.config.degraded_ttl_factor if self._failures.degraded else 1.0

    def _count(self, name: str) -> None:
        with self._lock:
            self._counters[name] += 1

    def _lookup(self, url: str) -> Tuple[Optional[Metadata], Optional[Future], Optional[CacheEntry]]:
        key = self.key_for(url)
        entry = self._read_entry(key)
        if entry is not None and entry.is_fresh(self._clock(), ttl_factor=self._ttl_factor()):
            self._count("hits")
            logger.debug("cache hit %s", key)
            return entry.value, None, entry
        if entry is not None:
            self._count("stale_reads")
            if self.config.serve_stale:
                # revalidate in the background, answer with what we have
                self._start_fetch(key, url)
                return entry.value, None, entry
        else:
            self._count("misses")
        logger.debug("cache miss %s", key)
        return None, self._start_fetch(key, url), entry

    def _resolve(self, pending: Future, prior: Optional[CacheEntry], wait: Optional[float]) -> Metadata:
        try:
            return pending.result(timeout=wait)
        except FutureTimeout:
            if prior is not None:
                return prior.value
            return Metadata.failed("pending")
        except Exception as e:
            # already logged by the fetch thread
            return Metadata.failed(f"internal_error: {e}")

    def _read_entry(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.store.read(key)
        except Exception as e:
            logger.warning("cache store read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return decode_entry(raw, key)
        except CacheCorruptionError as e:
            logger.warning("discarding corrupt cache record %s: %s", key, e.reason)
            try:
                self.store.delete(key)
            except Exception as de:
                logger.warning("could not delete corrupt record %s: %s", key, de)
            return None

    def _write_entry(self, entry: CacheEntry) -> None:
        try:
            self.store.write(entry.key, encode_entry(entry), entry.ttl + self.config.stale_grace)
        except Exception as e:
            logger.warning("cache store write failed for %s: %s", entry.key, e)

    # -- fetch path --

    def _start_fetch(self, key: str, url: str) -> Future:
        with self._lock:
            pending = self._inflight.get(key)
            if pending is not None:
                return pending
            pending = Future()
            self._inflight[key] = pending

        # Leader only. Another leader may have finished between our store
        # read and taking the slot; its fresh entry makes this fetch moot.
        entry = self._read_entry(key)
        if entry is not None and entry.is_fresh(self._clock(), ttl_factor=self._ttl_factor()):
            self._finish(key, pending, result=entry.value)
            return pending
        try:
            self._fetch_pool.submit(self._run_fetch, key, url, pending, entry)
        except RuntimeError as e:
            # pool already shut down
            self._finish(key, pending, error=e)
            raise
        return pending

    def _finish(self, key: str, pending: Future, *, result: Optional[Metadata] = None, error: Optional[BaseException] = None) -> None:
        with self._lock:
            if self._inflight.get(key) is pending:
                del self._inflight[key]
                self._invalidated.discard(key)
        if error is not None:
            pending.set_exception(error)
        else:
            pending.set_result(result)

    def _was_invalidated(self, key: str) -> bool:
        with self._lock:
            return key in self._invalidated

    def _run_fetch(self, key: str, url: str, pending: Future, prior: Optional[CacheEntry]) -> None:
        try:
            self._count("fetches")
            metadata = self._fetch_with_retries(key, url)
            if metadata.ok:
                failure_count = 0
                ttl = self.config.ttl
            else:
                previous = prior.failure_count if prior is not None else 0
                failure_count = min(MAX_FAILURE_COUNT, previous + 1)
                ttl = self.config.failure_ttl
            entry = CacheEntry(
                key=key,
                value=metadata,
                fetched_at=self._clock(),
                ttl=ttl,
                failure_count=failure_count,
            )
            if self._was_invalidated(key):
                logger.debug("%s invalidated during fetch; result not cached", key)
            else:
                self._write_entry(entry)
                if self._was_invalidated(key):
                    # invalidate() landed while the write was in progress
                    logger.debug("%s invalidated during write; dropping it", key)
                    try:
                        self.store.delete(key)
                    except Exception as de:
                        logger.warning("could not drop invalidated entry %s: %s", key, de)
        except Exception as e:
            logger.exception("metadata fetch for %s crashed", url)
            self._finish(key, pending, error=e)
            return
        self._finish(key, pending, result=metadata)

    def _fetch_with_retries(self, key: str, url: str) -> Metadata:
        cfg = self.config
        last_error = "fetch_failed"
        for attempt in range(1, cfg.max_attempts + 1):
            result = self._attempt(key, url)
            if self._failures.record(result.ok):
                snap = self._failures.snapshot()
                logger.info(
                    "metadata fetch %s (failure ratio %.2f over %d attempts)",
                    "degraded" if snap.degraded else "recovered",
                    snap.ratio,
                    snap.samples,
                )
            if result.ok:
                return result.metadata
            last_error = result.error or result.status
            if attempt < cfg.max_attempts:
                delay = backoff_delay(attempt, base=cfg.base_delay, factor=cfg.backoff_factor, max_delay=cfg.max_delay)
                logger.debug("attempt %d for %s failed (%s); retrying in %.3fs", attempt, url, last_error, delay)
                self._sleep(delay)
        logger.warning("giving up on %s after %d attempts: %s", url, cfg.max_attempts, last_error)
        return Metadata.failed(last_error)

    def _attempt(self, key: str, url: str) -> FetchResult:
        self._count("attempts")
        timeout = self.config.fetch_timeout
        with self._lock:
            call = self._calls.get(key)
        if call is None:
            call = self._call_fetcher(key, url, timeout)
        else:
            logger.debug("previous call for %s still running; waiting on it", key)
        try:
            raw: Union[FetchResult, Metadata] = call.result(timeout=timeout)
        except FutureTimeout:
            return FetchResult.failure("timeout", f"no response within {timeout:g}s")
        except Exception as e:
            logger.warning("fetcher raised for %s: %s", url, e)
            return FetchResult.failure("error", str(e) or type(e).__name__)
        return coerce_fetch_result(raw)

    def _call_fetcher(self, key: str, url: str, timeout: float) -> Future:
        """Run the fetcher on its own thread so a hung call never holds a pool worker."""
        call: Future = Future()

        def run() -> None:
            try:
                raw = self._fetcher(url, timeout)
            except Exception as e:
                self._drop_call(key, call)
                call.set_exception(e)
                return
            self._drop_call(key, call)
            call.set_result(raw)

        with self._lock:
            self._calls[key] = call
        threading.Thread(target=run, name="rte-call", daemon=True).start()
        return call

    def _drop_call(self, key: str, call: Future) -> None:
        with self._lock:
            if self._calls.get(key) is call:
                del self._calls[key]
