"""
Main cracker classes for the SA ID password cracker.

BruteForceSearch runs a pool of workers over a stream of candidates and stops
them all as soon as one candidate unlocks the document. DocumentCracker ties
an identity pattern, the candidate generator and a document tester together.
"""

import itertools
import multiprocessing
import multiprocessing.dummy
import os
import queue
import shutil
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from tqdm import tqdm

from .generator import CandidateGenerator, DEFAULT_OBSOLETE_DIGITS
from .pattern import GenderType, IdentityPattern
from .worker import (
    DONE,
    FAULT,
    FOUND,
    PROGRESS,
    DocumentPasswordTester,
    worker_process,
)
from sa_id_cracker.utils.exceptions import (
    DocumentNotEncryptedError,
    InvalidArgumentError,
    WorkerError,
)
from sa_id_cracker.utils.logger import get_logger

# Below this many combinations the exact candidate count is computed up front
# so the progress bar can show a total
COUNT_THRESHOLD = 200_000


@dataclass
class SearchResult:
    """Outcome of a search; ``password`` is None when nothing matched"""

    password: Optional[str]
    tried: int
    elapsed: float

    @property
    def found(self) -> bool:
        return self.password is not None


def _batched(candidates: Iterable[str], size: int) -> Iterator[List[str]]:
    iterator = iter(candidates)
    while True:
        batch = list(itertools.islice(iterator, size))
        if not batch:
            return
        yield batch


class BruteForceSearch:
    """Tests candidates in parallel and returns the first that succeeds

    Workers pull batches of candidates from a bounded queue. A single shared
    event is the cancellation signal: it is set once, by the first worker to
    succeed or fail, and every worker checks it before each trial. The first
    FOUND or FAULT message this process receives decides the outcome.

    With more than one success in the stream the result is whichever the
    scheduler reports first, not necessarily the first in order.
    """

    BACKENDS = ("process", "thread")

    def __init__(self, processes: Optional[int] = None, batch_size: int = 256,
                 backend: str = "process", progress: bool = True,
                 report_frequency: int = 100, poll_interval: float = 0.05,
                 logger=None):
        """Initialize the worker pool settings

        Args:
            processes: Number of workers (default: CPU count - 1)
            batch_size: Candidates handed to a worker at a time
            backend: "process" for multiprocessing, "thread" for
                multiprocessing.dummy; threads accept testers that cannot be pickled
            progress: Whether to show a progress bar
            report_frequency: Trials between worker progress reports
            poll_interval: Seconds between checks of queues and workers
            logger: Optional logger instance
        """
        if backend not in self.BACKENDS:
            raise InvalidArgumentError(f"Unknown backend {backend!r}, expected one of {self.BACKENDS}")
        if batch_size < 1:
            raise InvalidArgumentError(f"Batch size must be positive, got {batch_size}")

        self.processes = processes or max(1, multiprocessing.cpu_count() - 1)
        self.batch_size = batch_size
        self.backend = backend
        self.progress = progress
        self.report_frequency = report_frequency
        self.poll_interval = poll_interval
        self.logger = logger or get_logger(__name__)

        self.active_workers = []
        self.finished_workers = set()
        self.found_password = None
        self.fault = None
        self.total_tried = 0
        self.progress_bar = None

    def _context(self):
        return multiprocessing.dummy if self.backend == "thread" else multiprocessing

    def _handle_message(self, kind: str, worker_id: int, payload) -> None:
        if kind == PROGRESS:
            self.total_tried += payload
            if self.progress_bar is not None:
                self.progress_bar.update(payload)
        elif kind == FOUND:
            if self.found_password is None and self.fault is None:
                self.found_password = payload
                self.logger.debug(f"Worker-{worker_id} found the password")
        elif kind == FAULT:
            if self.found_password is None and self.fault is None:
                self.fault = payload
                self.logger.debug(f"Worker-{worker_id} reported a tester fault: {payload}")
        elif kind == DONE:
            self.finished_workers.add(worker_id)

    def _drain_results(self, result_queue, block: bool = False) -> None:
        """Handle every message currently queued, waiting briefly for one if ``block``"""
        while True:
            try:
                if block:
                    message = result_queue.get(timeout=self.poll_interval)
                    block = False
                else:
                    message = result_queue.get(block=False)
            except queue.Empty:
                return
            self._handle_message(*message)

    def _check_workers(self) -> None:
        """Fail if a worker died without finishing"""
        for worker_id, p in enumerate(self.active_workers):
            if p.exitcode not in (None, 0) and worker_id not in self.finished_workers:
                raise WorkerError(f"Worker-{worker_id} exited with code {p.exitcode}")

    def _cleanup_workers(self, task_queue) -> None:
        """Stop and clean up any active workers"""
        for p in self.active_workers:
            p.join(timeout=max(1.0, self.poll_interval * 10))
            if p.is_alive() and hasattr(p, "terminate"):
                p.terminate()
                p.join(timeout=1)
        self.active_workers = []

        # Unread batches must not keep the queue's feeder thread alive
        if hasattr(task_queue, "cancel_join_thread"):
            task_queue.cancel_join_thread()

    def _start_workers(self, mp, test, task_queue, result_queue, stop_event) -> None:
        for i in range(self.processes):
            p = mp.Process(
                target=worker_process,
                args=(test, task_queue, result_queue, stop_event),
                kwargs={
                    "report_frequency": self.report_frequency,
                    "poll_interval": self.poll_interval,
                    "worker_id": i,
                },
            )
            p.daemon = True
            p.start()
            self.active_workers.append(p)

    def _put(self, task_queue, item, stop_event, result_queue) -> bool:
        """Queue a work item, servicing results while the queue is full

        Returns False if the search was cancelled first.
        """
        while not stop_event.is_set():
            try:
                task_queue.put(item, timeout=self.poll_interval)
                return True
            except queue.Full:
                self._drain_results(result_queue)
                self._check_workers()
        return False

    def search(self, candidates: Iterable[str], test: Callable[[str], bool],
               total: Optional[int] = None) -> SearchResult:
        """Test candidates until one succeeds or they run out

        Args:
            candidates: Candidate passwords, consumed lazily
            test: Returns True for the password; must be picklable for the
                process backend
            total: Optional number of candidates, for the progress bar

        Returns:
            SearchResult with the password, or with None if no candidate matched

        Raises:
            TesterFaultError: If the tester failed for a reason other than a
                wrong password; the search is aborted
            WorkerError: If a worker died
        """
        mp = self._context()
        task_queue = mp.Queue(maxsize=self.processes * 2)
        result_queue = mp.Queue()
        stop_event = mp.Event()

        self.active_workers = []
        self.finished_workers = set()
        self.found_password = None
        self.fault = None
        self.total_tried = 0
        start_time = time.time()

        self.logger.info(f"Using {self.processes} {self.backend} workers, "
                         f"batches of {self.batch_size:,} candidates")
        self.progress_bar = tqdm(total=total, unit="id", desc="Trying", disable=not self.progress)

        try:
            self._start_workers(mp, test, task_queue, result_queue, stop_event)

            for batch in _batched(candidates, self.batch_size):
                self._drain_results(result_queue)
                self._check_workers()
                if not self._put(task_queue, batch, stop_event, result_queue):
                    break

            # No more candidates: one sentinel per worker
            for _ in self.active_workers:
                if not self._put(task_queue, None, stop_event, result_queue):
                    break

            while len(self.finished_workers) < len(self.active_workers):
                self._drain_results(result_queue, block=True)
                self._check_workers()
            self._drain_results(result_queue)
        finally:
            stop_event.set()
            self._cleanup_workers(task_queue)
            self.progress_bar.close()
            self.progress_bar = None

        elapsed = time.time() - start_time
        if self.fault is not None:
            self.logger.error(f"Search aborted after {self.total_tried:,} candidates: {self.fault}")
            raise self.fault

        if self.found_password is not None:
            self.logger.info(f"PASSWORD FOUND: {self.found_password}")
        else:
            self.logger.warning("PASSWORD NOT FOUND after trying every candidate")
        self.logger.info(f"Candidates tried: {self.total_tried:,} in {elapsed:.2f} seconds")

        return SearchResult(password=self.found_password, tried=self.total_tried, elapsed=elapsed)


class DocumentCracker:
    """Recovers an identity number password for one document"""

    def __init__(self, tester: DocumentPasswordTester,
                 search: Optional[BruteForceSearch] = None,
                 output_dir: Optional[str] = None, logger=None):
        """Initialize with a document tester

        Args:
            tester: Tester for the document to unlock
            search: Search settings (default: BruteForceSearch())
            output_dir: Optional directory to copy the unlocked document into,
                named ``<password>_<original name>``
            logger: Optional logger instance
        """
        self.tester = tester
        self.logger = logger or get_logger(__name__)
        self.search = search or BruteForceSearch(logger=self.logger)
        self.output_dir = output_dir

    def crack(self, pattern: IdentityPattern,
              gender: Optional[GenderType] = None,
              obsolete_digits: Sequence[int] = DEFAULT_OBSOLETE_DIGITS,
              legacy_sequence_range: bool = False) -> SearchResult:
        """Search every identity number matching ``pattern`` for the password

        Raises:
            DocumentNotEncryptedError: If the document has no password
        """
        if not self.tester.is_password_protected():
            raise DocumentNotEncryptedError("This document is not password protected!")

        generator = CandidateGenerator(pattern, gender,
                                       obsolete_digits=obsolete_digits,
                                       legacy_sequence_range=legacy_sequence_range)
        space_size = generator.space_size()
        self.logger.info(f"Pattern {pattern.mask()} (year {pattern.year_of_birth}), "
                         f"gender hint: {gender.value if gender else 'none'}")
        self.logger.info(f"Combinations to walk: {space_size:,}")

        total = generator.count() if space_size <= COUNT_THRESHOLD else None
        if total is not None:
            self.logger.info(f"Valid candidates: {total:,}")

        result = self.search.search(generator.generate(), self.tester, total=total)

        if result.found and self.output_dir:
            self.save_document(result.password)
        return result

    def save_document(self, password: str) -> Optional[str]:
        """Copy the unlocked document into the output directory"""
        document_path = getattr(self.tester, "document_path", None)
        if not document_path:
            self.logger.warning("Tester has no document path, nothing to copy")
            return None

        os.makedirs(self.output_dir, exist_ok=True)
        target = os.path.join(self.output_dir, f"{password}_{os.path.basename(document_path)}")
        shutil.copy2(document_path, target)
        self.logger.info(f"Document copied to {target}")
        return target
