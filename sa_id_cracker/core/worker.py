"""
Worker module for the SA ID password cracker.

This module contains the worker loop run by each member of the search pool
and the testers that decide whether a candidate unlocks a document.
"""

import io
import os
import queue
import subprocess
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

import pikepdf

from sa_id_cracker.utils.exceptions import (
    DocumentNotFoundError,
    TesterFaultError,
)

# Message kinds sent from workers to the coordinating process
FOUND = "found"
FAULT = "fault"
PROGRESS = "progress"
DONE = "done"


def worker_process(test: Callable[[str], bool],
                   task_queue,
                   result_queue,
                   stop_event,
                   report_frequency: int = 100,
                   poll_interval: float = 0.05,
                   worker_id: Optional[int] = None) -> None:
    """Worker that tests batches of candidates until told to stop

    Batches are lists of candidates taken from ``task_queue``; ``None`` means
    no more work. ``stop_event`` is checked before every trial, so a trial
    already inside ``test`` always runs to completion.

    Messages put on ``result_queue`` are ``(kind, worker_id, payload)`` tuples:
    PROGRESS with a trial count, FOUND with the password, FAULT with a
    TesterFaultError, and a final DONE.

    Args:
        test: Callable returning True when a candidate is the password
        task_queue: Queue of candidate batches
        result_queue: Queue to report progress and results
        stop_event: Shared cancellation flag
        report_frequency: How many trials between progress reports
        poll_interval: Seconds to wait on an empty task queue before rechecking
        worker_id: Optional ID for this worker
    """
    try:
        while not stop_event.is_set():
            try:
                batch = task_queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            if batch is None:
                break

            unreported = 0
            for candidate in batch:
                if stop_event.is_set():
                    break

                try:
                    matched = test(candidate)
                except TesterFaultError as e:
                    stop_event.set()
                    result_queue.put((FAULT, worker_id, e))
                    return
                except Exception as e:
                    stop_event.set()
                    result_queue.put((FAULT, worker_id, TesterFaultError(
                        f"Tester failed on {candidate}: {type(e).__name__}: {e}", candidate)))
                    return

                unreported += 1
                if matched:
                    stop_event.set()
                    result_queue.put((PROGRESS, worker_id, unreported))
                    result_queue.put((FOUND, worker_id, candidate))
                    return

                if unreported >= report_frequency:
                    result_queue.put((PROGRESS, worker_id, unreported))
                    unreported = 0

            if unreported:
                result_queue.put((PROGRESS, worker_id, unreported))
    finally:
        result_queue.put((DONE, worker_id, None))


class DocumentPasswordTester(ABC):
    """Decides whether a candidate is the password of one document

    Implementations return False for a wrong password and raise
    TesterFaultError only when the document itself cannot be processed.
    Instances are handed to worker processes, so they must be picklable.
    """

    @abstractmethod
    def __call__(self, password: str) -> bool:
        pass

    def is_password_protected(self) -> bool:
        return True


class PdfPasswordTester(DocumentPasswordTester):
    """Tests passwords against a PDF held in memory"""

    def __init__(self, document: Union[str, bytes]):
        """Initialize with a PDF path or the PDF's bytes"""
        if isinstance(document, (bytes, bytearray)):
            self.document_path = None
            self.document_bytes = bytes(document)
        else:
            if not os.path.isfile(document):
                raise DocumentNotFoundError(f"PDF file not found: {document}")
            self.document_path = document
            with open(document, "rb") as f:
                self.document_bytes = f.read()

    def _open(self, password: str = "") -> pikepdf.Pdf:
        return pikepdf.open(io.BytesIO(self.document_bytes), password=password)

    def __call__(self, password: str) -> bool:
        """Try a single password on the PDF

        Returns:
            True if password is correct, False otherwise
        """
        try:
            with self._open(password):
                return True
        except pikepdf.PasswordError:
            return False
        except pikepdf.PdfError as e:
            raise TesterFaultError(f"Cannot read PDF: {e}", password) from e

    def is_password_protected(self) -> bool:
        """Check if the PDF is actually password protected"""
        try:
            with self._open():
                return False
        except pikepdf.PasswordError:
            return True
        except pikepdf.PdfError as e:
            raise TesterFaultError(f"Cannot read PDF: {e}") from e


class StriataPasswordTester(DocumentPasswordTester):
    """Tests passwords against a Striata encrypted EMC file

    Runs the ``striata-readerc`` command line reader once per candidate. The
    reader prints nothing when it extracts the document and prints an error
    line otherwise.
    """

    def __init__(self, document_path: str, output_dir: str,
                 executable: str = "striata-readerc", timeout: Optional[float] = 60):
        if not os.path.isfile(document_path):
            raise DocumentNotFoundError(f"EMC file not found: {document_path}")
        os.makedirs(output_dir, exist_ok=True)

        self.document_path = document_path
        self.output_dir = output_dir
        self.executable = executable
        self.timeout = timeout

    def __call__(self, password: str) -> bool:
        start_time = time.time()
        try:
            result = subprocess.run(
                [self.executable, f"-password={password}",
                 f"-outdir={self.output_dir}", self.document_path],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                universal_newlines=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise TesterFaultError(
                f"{self.executable} timed out after {time.time() - start_time:.1f} seconds",
                password) from e
        except OSError as e:
            raise TesterFaultError(f"Cannot run {self.executable}: {e}", password) from e

        return not result.stdout.strip()
