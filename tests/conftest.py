# Ensure the repository root is on sys.path so `print_elements` can be imported in tests.

import sys
from io import BytesIO
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    # This file lives at: <repo_root>/tests/conftest.py
    here = Path(__file__).resolve()
    repo_str = str(here.parent.parent)
    if repo_str not in sys.path:
        sys.path.insert(0, repo_str)


_ensure_repo_root_on_syspath()


RTF_SAMPLE = (
    r"{\rtf1\ansi\deff0{\fonttbl{\f0\fswiss Helvetica;}}"
    r"\f0\pard Hello {\b World}\par Second line of the note\par}"
)


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Keep a developer's own config file and PRINTELEMENTS_* env out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("PRINTELEMENTS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PRINTELEMENTS_CONFIG_PATH", str(tmp_path / "no-config.json"))


@pytest.fixture
def png_bytes() -> bytes:
    from PIL import Image

    buf = BytesIO()
    Image.new("RGB", (30, 20), (255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    from pypdf import PdfWriter

    writer = PdfWriter()
    writer.add_blank_page(width=200, height=300)
    writer.add_blank_page(width=200, height=300)
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


@pytest.fixture
def rtf_bytes() -> bytes:
    return RTF_SAMPLE.encode("ascii")


class RecordingHook:
    def __init__(self):
        self.events = []

    def on_event(self, event, element, **fields):
        self.events.append((event, element.sequence, fields))

    def names(self):
        return [e[0] for e in self.events]


@pytest.fixture
def hook() -> RecordingHook:
    return RecordingHook()
