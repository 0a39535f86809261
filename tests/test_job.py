import threading
import time

import pytest

from print_elements.core.errors import ContractViolation, InvalidSourceData
from print_elements.printing.decoders import decode_raw, decode_rtf
from print_elements.printing.element import PrintJobElement
from print_elements.printing.job import PrintJob
from print_elements.printing.types import ElementType, PreparedBytes, RenderedSurface


def test_job_assigns_sequence_numbers(png_bytes):
    job = PrintJob()
    first = job.append(PrintJobElement.raw(b"\x1b\x40"))
    second = job.append(PrintJobElement.image(png_bytes))
    assert (first.sequence, second.sequence) == (0, 1)
    assert job.status()["total"] == 2
    assert job.status()["pending"] == 2


def test_outputs_follow_sequence_not_completion_time(rtf_bytes):
    gate = threading.Event()

    def _slow_rtf(source, encoding, options, settings):
        gate.wait(5)
        time.sleep(0.1)
        return decode_rtf(source, encoding, options, settings)

    def _fast_raw(source, encoding, options, settings):
        time.sleep(0.001)
        return decode_raw(source, encoding, options, settings)

    job = PrintJob()
    rtf = job.append(PrintJobElement.document("rtf", rtf_bytes))
    raw = job.append(PrintJobElement.raw(bytes([0x1B, 0x40]), lang="escpos", dot_density=24))
    job.prepare_all(decoders={ElementType.RTF: _slow_rtf, ElementType.RAW: _fast_raw})

    assert raw.wait(5)
    assert raw.is_prepared()
    assert not rtf.is_prepared()
    with pytest.raises(ContractViolation):
        job.ordered_outputs()

    gate.set()
    assert job.wait_all(5)

    assert job.completion_order() == [raw.sequence, rtf.sequence]
    outputs = job.ordered_outputs()
    assert isinstance(outputs[0], RenderedSurface)
    assert isinstance(outputs[1], PreparedBytes)
    assert outputs[1].data == bytes([0x1B, 0x40])
    assert job.status()["prepared"] == 2
    job.close()


def test_wait_all_times_out_while_an_element_is_stuck():
    gate = threading.Event()

    def _stuck(source, encoding, options, settings):
        gate.wait(5)
        return decode_raw(source, encoding, options, settings)

    job = PrintJob([PrintJobElement.raw(b"a"), PrintJobElement.raw(b"b")])
    job.prepare_all(decoders={ElementType.RAW: _stuck})
    try:
        assert job.wait_all(0.05) is False
    finally:
        gate.set()
    assert job.wait_all(5) is True


def test_wait_all_surfaces_first_failure():
    job = PrintJob()
    job.append(PrintJobElement.raw(b"ok"))
    bad = job.append(PrintJobElement.document("pdf", b"garbage"))
    job.prepare_all()

    with pytest.raises(InvalidSourceData):
        job.wait_all(5)
    assert bad.exception() is not None
    status = job.status()
    assert status["failed"] == 1
    assert status["prepared"] == 1
    assert status["pending"] == 0
