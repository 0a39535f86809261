import json

import pytest

from print_elements import __main__ as cli
from print_elements.__main__ import guess_type, main
from print_elements.core.errors import SchedulingFailure
from print_elements.printing.element import PrintJobElement
from print_elements.printing.types import ElementType


@pytest.fixture(autouse=True)
def _keep_test_logging(monkeypatch):
    # main() reconfigures the root logger; leave pytest's handlers alone
    monkeypatch.setattr(cli, "configure_logging", lambda level=None: None)


def test_guess_type_from_extension():
    assert guess_type("logo.PNG") is ElementType.IMAGE
    assert guess_type("invoice.pdf") is ElementType.PDF
    assert guess_type("note.rtf") is ElementType.RTF
    assert guess_type("cmds.xml") is ElementType.XML
    assert guess_type("label.zpl") is ElementType.RAW


def test_cli_prepares_files_in_job_order(tmp_path, png_bytes, capsys):
    raw = tmp_path / "label.zpl"
    raw.write_bytes(b"^XA^XZ")
    img = tmp_path / "logo.png"
    img.write_bytes(png_bytes)

    rc = main([str(raw), str(img), "--lang", "ZPLII", "--x", "5", "--json"])
    assert rc == 0

    out = json.loads(capsys.readouterr().out)
    first, second = out["elements"]
    assert first["sequence"] == 0 and first["bytes"] == 6 and first["lang"] == "zpl"
    assert second["sequence"] == 1 and (second["width"], second["height"]) == (30, 20)
    assert second["x"] == 5
    assert out["job"]["prepared"] == 2


def test_cli_reports_failures(tmp_path, capsys):
    bad = tmp_path / "broken.pdf"
    bad.write_bytes(b"nope")

    rc = main([str(bad)])
    assert rc == 1
    assert "[FAILED]" in capsys.readouterr().out


def test_cli_rejects_xml_without_tag(tmp_path, capsys):
    doc = tmp_path / "cmds.xml"
    doc.write_text("<job><data>QUJD</data></job>")

    assert main([str(doc)]) == 1
    assert "error:" in capsys.readouterr().err


def test_cli_reports_scheduling_failures(tmp_path, monkeypatch, capsys):
    raw = tmp_path / "label.zpl"
    raw.write_bytes(b"^XA^XZ")

    def _refuse(self, **kwargs):
        raise SchedulingFailure("no threads left")

    monkeypatch.setattr(PrintJobElement, "prepare", _refuse)
    assert main([str(raw)]) == 1
    assert "error: no threads left" in capsys.readouterr().err


def test_cli_reports_unreadable_config(tmp_path, monkeypatch, capsys):
    cfg = tmp_path / "config.json"
    cfg.write_text("{not json")
    monkeypatch.setenv("PRINTELEMENTS_CONFIG_PATH", str(cfg))
    raw = tmp_path / "label.zpl"
    raw.write_bytes(b"^XA^XZ")

    assert main([str(raw)]) == 1
    assert "error: cannot read config" in capsys.readouterr().err
