"""
Tests for the worker loop and the document testers.
"""

import io
import operator
import os
import queue
import stat
import threading
from functools import partial

import pikepdf
import pytest

from sa_id_cracker.core.worker import (
    DONE,
    FAULT,
    FOUND,
    PROGRESS,
    PdfPasswordTester,
    StriataPasswordTester,
    worker_process,
)
from sa_id_cracker.utils.exceptions import DocumentNotFoundError, TesterFaultError


def make_pdf(password=None):
    pdf = pikepdf.new()
    pdf.add_blank_page()
    buffer = io.BytesIO()
    if password is None:
        pdf.save(buffer)
    else:
        pdf.save(buffer, encryption=pikepdf.Encryption(owner=password, user=password))
    return buffer.getvalue()


def run_worker(test, batches, **kwargs):
    task_queue = queue.Queue()
    result_queue = queue.Queue()
    stop_event = threading.Event()
    for batch in batches:
        task_queue.put(batch)
    task_queue.put(None)

    worker_process(test, task_queue, result_queue, stop_event, poll_interval=0.01, **kwargs)

    messages = []
    while not result_queue.empty():
        messages.append(result_queue.get())
    return messages, stop_event


def test_worker_reports_found_password():
    messages, stop_event = run_worker(partial(operator.eq, "b"), [["a", "b", "c"]], worker_id=7)

    assert messages == [(PROGRESS, 7, 2), (FOUND, 7, "b"), (DONE, 7, None)]
    assert stop_event.is_set()


def test_worker_reports_progress_in_chunks():
    messages, stop_event = run_worker(partial(operator.eq, "z"), [list("abcde"), list("fg")],
                                      report_frequency=2, worker_id=1)

    assert messages == [
        (PROGRESS, 1, 2), (PROGRESS, 1, 2), (PROGRESS, 1, 1),
        (PROGRESS, 1, 2),
        (DONE, 1, None),
    ]
    assert not stop_event.is_set()


def test_worker_stops_when_cancelled():
    task_queue = queue.Queue()
    result_queue = queue.Queue()
    stop_event = threading.Event()
    stop_event.set()
    task_queue.put(["a"])

    worker_process(partial(operator.eq, "a"), task_queue, result_queue, stop_event, worker_id=0)

    assert result_queue.get_nowait() == (DONE, 0, None)
    assert result_queue.empty()


def test_worker_converts_tester_errors():
    def broken(candidate):
        raise RuntimeError("disk on fire")

    messages, stop_event = run_worker(broken, [["a", "b"]], worker_id=2)

    kind, worker_id, error = messages[0]
    assert (kind, worker_id) == (FAULT, 2)
    assert isinstance(error, TesterFaultError)
    assert error.candidate == "a"
    assert messages[-1] == (DONE, 2, None)
    assert stop_event.is_set()


def test_pdf_tester_accepts_correct_password():
    tester = PdfPasswordTester(make_pdf("9202235109082"))

    assert tester.is_password_protected()
    assert tester("9202235109082") is True
    assert tester("9202235109083") is False


def test_pdf_tester_reads_file(tmp_path):
    path = tmp_path / "statement.pdf"
    path.write_bytes(make_pdf("secret"))

    tester = PdfPasswordTester(str(path))

    assert tester.document_path == str(path)
    assert tester("secret")


def test_pdf_tester_detects_unprotected_document():
    assert not PdfPasswordTester(make_pdf()).is_password_protected()


def test_pdf_tester_faults_on_corrupt_document():
    tester = PdfPasswordTester(b"this is not a pdf")

    with pytest.raises(TesterFaultError):
        tester("9202235109082")


def test_pdf_tester_missing_file(tmp_path):
    with pytest.raises(DocumentNotFoundError):
        PdfPasswordTester(str(tmp_path / "missing.pdf"))


@pytest.fixture
def fake_reader(tmp_path):
    script = tmp_path / "striata-readerc"
    script.write_text(
        "#!/bin/sh\n"
        'if [ "$1" = "-password=9202235109082" ]; then exit 0; fi\n'
        'echo "Invalid password"\n'
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return str(script)


@pytest.mark.skipif(os.name != "posix", reason="shell script reader")
def test_striata_tester_uses_reader_output(tmp_path, fake_reader):
    document = tmp_path / "statement.emc"
    document.write_bytes(b"emc")
    output_dir = tmp_path / "extracted"

    tester = StriataPasswordTester(str(document), str(output_dir), executable=fake_reader)

    assert output_dir.is_dir()
    assert tester("9202235109082") is True
    assert tester("9202235109083") is False


def test_striata_tester_missing_reader(tmp_path):
    document = tmp_path / "statement.emc"
    document.write_bytes(b"emc")

    tester = StriataPasswordTester(str(document), str(tmp_path / "out"),
                                   executable=str(tmp_path / "no-such-reader"))

    with pytest.raises(TesterFaultError):
        tester("9202235109082")


def test_striata_tester_missing_document(tmp_path):
    with pytest.raises(DocumentNotFoundError):
        StriataPasswordTester(str(tmp_path / "missing.emc"), str(tmp_path / "out"))
