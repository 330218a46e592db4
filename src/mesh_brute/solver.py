import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
import threading
import time
from typing import Iterator, Literal, TypeAlias, Optional

import structlog

from mesh_brute.algorithm.cipher import decrypt
from mesh_brute.algorithm.counter_block import build_counter_block
from mesh_brute.algorithm.extractor import decode_payload, extract
from mesh_brute.algorithm.key_space import KeySpace, expand_key, partition
from mesh_brute.algorithm.validator import validate
from mesh_brute.models.search import (
    MAX_DEPTH,
    InvalidSearchConfig,
    SearchConfig,
    SearchProgress,
    SearchResult,
)

log = structlog.get_logger()

SearchOutcome: TypeAlias = Literal["running", "found", "exhausted", "cancelled"]


class KeySearch:
    """
    One run of the key search over a depth-d key space (or a slice of it).

    The search advances one chunk at a time through `chunks()`, which yields
    a progress snapshot after every chunk that ends without a match. The
    caller decides what happens between chunks: report progress, yield to
    an event loop, or just keep going.
    """

    def __init__(
        self,
        config: SearchConfig,
        *,
        start: int = 0,
        stop: Optional[int] = None,
        counter_block: Optional[bytes] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        if not 1 <= config.depth <= MAX_DEPTH:
            raise InvalidSearchConfig(f"unsupported depth {config.depth}")

        self.config = config
        self.counter_block = counter_block or build_counter_block(config.packet_id, config.from_node)
        self.key_space = KeySpace(config.depth, start, stop)
        self.total = config.total
        self.current = 0
        self.skipped = 0
        self.result: Optional[SearchResult] = None
        self.outcome: SearchOutcome = "running"
        self._stop_event = stop_event
        self._started = time.monotonic()

    @property
    def stop_requested(self) -> bool:
        if self.config.cancelled:
            return True
        return self._stop_event is not None and self._stop_event.is_set()

    def progress(self) -> SearchProgress:
        elapsed = time.monotonic() - self._started
        rate = round(self.current / elapsed) if elapsed > 0 else 0
        return SearchProgress(current=self.current, total=self.total, keys_per_second=rate)

    def try_key(self, candidate: bytes) -> Optional[SearchResult]:
        """Decrypt with one candidate and return a result if it looks right."""
        try:
            decrypted = decrypt(
                self.config.ciphertext,
                expand_key(candidate, self.config.simple_psk),
                self.counter_block,
            )
        except ValueError:
            # Malformed call parameters, not a wrong key.
            self.skipped += 1
            return None

        validation = validate(decrypted)
        if not validation.valid:
            return None

        extracted = extract(decrypted)
        portnum = validation.portnum if validation.portnum is not None else extracted.portnum
        return SearchResult(
            key=candidate,
            key_hex=f"0x{candidate.hex()}",
            decrypted=decrypted,
            portnum=portnum,
            payload=decode_payload(extracted.portnum, extracted.payload),
            confidence=validation.confidence,
        )

    def chunks(self) -> Iterator[SearchProgress]:
        """Run the search, yielding progress at each chunk boundary."""
        chunk_size = self.config.chunk_size
        self._started = time.monotonic()

        while True:
            if self.stop_requested:
                self.outcome = "cancelled"
                return

            candidates = self.key_space.take(chunk_size)
            if not candidates:
                self.outcome = "exhausted"
                return

            for candidate in candidates:
                result = self.try_key(candidate)
                self.current += 1
                if result is not None:
                    self.result = result
                    self.outcome = "found"
                    return

            # Ran dry part-way through the chunk.
            if len(candidates) < chunk_size:
                self.outcome = "exhausted"
                return

            yield self.progress()


def _log_finish(run: KeySearch) -> None:
    progress = run.progress()
    if run.skipped:
        log.debug("skipped candidates", skipped=run.skipped)

    if run.outcome == "found":
        log.info(
            "key found",
            key=run.result.key_hex,
            portnum=run.result.portnum,
            confidence=str(run.result.confidence),
            tried=progress.current,
        )
    else:
        log.info(f"search {run.outcome}", tried=progress.current, total=progress.total,
                 keys_per_second=progress.keys_per_second)


def _log_start(config: SearchConfig, workers: int = 1) -> None:
    log.info(
        "search started",
        depth=config.depth,
        total=config.total,
        packet_id=config.packet_id,
        from_node=config.from_node,
        ciphertext_len=len(config.ciphertext),
        workers=workers,
    )


def search(config: SearchConfig) -> Optional[SearchResult]:
    """
    Search the key space synchronously. Returns the first structural match,
    or None when the space is exhausted or the search was cancelled.

    Blocks until done, so run it on a worker thread when the caller has a
    UI to keep alive.
    """
    _log_start(config)
    run = KeySearch(config)
    for progress in run.chunks():
        if config.progress_callback:
            config.progress_callback(progress)
    _log_finish(run)
    return run.result


async def search_async(config: SearchConfig) -> Optional[SearchResult]:
    """Same as `search`, but gives the event loop a turn after every chunk."""
    _log_start(config)
    run = KeySearch(config)
    for progress in run.chunks():
        if config.progress_callback:
            config.progress_callback(progress)
        await asyncio.sleep(0)
    _log_finish(run)
    return run.result


class _ProgressAggregator:
    """Sums progress from shard workers into one monotonic stream."""

    def __init__(self, config: SearchConfig):
        self._callback = config.progress_callback
        self._total = config.total
        self._lock = threading.Lock()
        self._current = 0
        self._started = time.monotonic()

    def add(self, count: int) -> None:
        with self._lock:
            self._current += count
            if self._callback is None:
                return
            elapsed = time.monotonic() - self._started
            rate = round(self._current / elapsed) if elapsed > 0 else 0
            self._callback(SearchProgress(current=self._current, total=self._total, keys_per_second=rate))


def search_sharded(config: SearchConfig, workers: int) -> Optional[SearchResult]:
    """
    Search with the key space split across `workers` threads.

    Each worker walks its own index range. The first worker to find a match
    stops the others. When several shards match, the one that got there
    first wins, which is not necessarily the numerically lowest key.
    """
    if workers < 1:
        raise InvalidSearchConfig(f"workers must be at least 1, got {workers}")
    if workers == 1:
        return search(config)

    _log_start(config, workers)
    counter_block = build_counter_block(config.packet_id, config.from_node)
    stop_event = threading.Event()
    aggregator = _ProgressAggregator(config)
    found: list[SearchResult] = []
    found_lock = threading.Lock()

    # Progress goes through the aggregator, not each shard.
    shard_config = replace(config, progress_callback=None)

    def run_shard(start: int, stop: int) -> KeySearch:
        run = KeySearch(shard_config, start=start, stop=stop,
                        counter_block=counter_block, stop_event=stop_event)
        reported = 0
        try:
            for progress in run.chunks():
                aggregator.add(progress.current - reported)
                reported = progress.current
        except BaseException:
            # A failed shard takes the others down with it.
            stop_event.set()
            raise
        if run.result is not None:
            with found_lock:
                found.append(run.result)
            stop_event.set()
        return run

    ranges = partition(config.depth, workers)
    with ThreadPoolExecutor(max_workers=len(ranges), thread_name_prefix="key-shard") as executor:
        futures = [executor.submit(run_shard, start, stop) for start, stop in ranges]
        runs = [future.result() for future in futures]

    tried = sum(run.current for run in runs)
    skipped = sum(run.skipped for run in runs)
    if skipped:
        log.debug("skipped candidates", skipped=skipped)

    if found:
        result = found[0]
        log.info("key found", key=result.key_hex, portnum=result.portnum,
                 confidence=str(result.confidence), tried=tried)
        return result

    outcome = "cancelled" if config.cancelled else "exhausted"
    log.info(f"search {outcome}", tried=tried, total=config.total)
    return None
