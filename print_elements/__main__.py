"""
Prepare files as print elements and report the results.

Usage:
  python -m print_elements label.zpl --lang zpl
  python -m print_elements logo.png --x 10 --y 20
  python -m print_elements invoice.pdf notes.rtf --timeout 30 --json
  python -m print_elements commands.xml --xml-tag data

The element type is taken from --type, or guessed from each file's extension
(images, .pdf, .rtf, .xml; anything else is raw).

Exit code:
  0  if every element was prepared
  1  if one or more elements failed
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from print_elements.core.config import get_config_path, get_settings
from print_elements.core.errors import PrintElementError
from print_elements.core.logging import configure_logging
from print_elements.core.sources import is_supported_image
from print_elements.printing.element import PrintJobElement
from print_elements.printing.job import PrintJob
from print_elements.printing.preparer import CancelToken
from print_elements.printing.types import ElementType

logger = logging.getLogger("print_elements.cli")


def guess_type(path: str) -> ElementType:
    ext = os.path.splitext(path)[1].lower()
    if is_supported_image(path):
        return ElementType.IMAGE
    if ext == ".pdf":
        return ElementType.PDF
    if ext == ".rtf":
        return ElementType.RTF
    if ext == ".xml":
        return ElementType.XML
    return ElementType.RAW


def build_element(path: str, args: argparse.Namespace) -> PrintJobElement:
    etype = ElementType.resolve(args.type) if args.type else guess_type(path)
    if etype is ElementType.RAW:
        return PrintJobElement.raw(path, lang=args.lang, dot_density=args.dot_density, encoding=args.encoding)
    if etype is ElementType.IMAGE:
        return PrintJobElement.image(path, x=args.x, y=args.y, encoding=args.encoding)
    if etype is ElementType.XML:
        return PrintJobElement.xml(path, tag=args.xml_tag or "", encoding=args.encoding)
    return PrintJobElement.document(etype, path, encoding=args.encoding)


def describe(element: PrintJobElement, path: str) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "file": path,
        "sequence": element.sequence,
        "type": element.element_type.value,
        "prepared": element.is_prepared(),
    }
    err = element.exception()
    if err is not None:
        info["error"] = f"{type(err).__name__}: {err}"
        return info
    if element.data is not None:
        info["bytes"] = len(element.data)
        if element.lang is not None:
            info["lang"] = element.lang.value
            info["dot_density"] = element.dot_density
    elif element.buffered_image is not None:
        img = element.buffered_image
        info.update({"width": img.width, "height": img.height, "x": element.image_x, "y": element.image_y})
    elif element.rtf_surface is not None:
        info.update({"width": element.rtf_width, "height": element.rtf_height})
    elif element.pdf_document is not None:
        info["pages"] = element.pdf_document.page_count
    return info


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="print_elements", description="Prepare files as print elements")
    parser.add_argument("files", nargs="+", help="Files to prepare, in job order")
    parser.add_argument("--type", choices=[t.value for t in ElementType], help="Element type for every file")
    parser.add_argument("--lang", help="Printer language for raw elements (e.g. zpl, epl, escpos)")
    parser.add_argument("--dot-density", type=int, default=32, help="Dot density for raw elements")
    parser.add_argument("--x", type=int, default=0, help="Image placement x")
    parser.add_argument("--y", type=int, default=0, help="Image placement y")
    parser.add_argument("--xml-tag", help="Tag holding base64 command data in xml files")
    parser.add_argument("--encoding", help="Character encoding (default from settings)")
    parser.add_argument("--timeout", type=float, default=None, help="Per-element deadline in seconds")
    parser.add_argument("--json", action="store_true", help="Print a JSON summary")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = get_settings()
    except (OSError, ValueError) as e:
        print(f"error: cannot read config {get_config_path()}: {e}", file=sys.stderr)
        return 1

    job = PrintJob(settings=settings)
    try:
        for path in args.files:
            job.append(build_element(path, args))
    except PrintElementError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    cancel = CancelToken()
    try:
        job.prepare_all(cancel_token=cancel, timeout=args.timeout)
    except PrintElementError as e:
        # Elements already started deliver nothing
        cancel.cancel()
        print(f"error: {e}", file=sys.stderr)
        return 1
    for element in job.elements:
        try:
            element.wait()
        except PrintElementError:
            # Reported per element below
            pass

    results = [describe(el, path) for el, path in zip(job.elements, args.files)]
    job.close()

    if args.json:
        print(json.dumps({"job": job.status(), "elements": results}, indent=2))
    else:
        for info in results:
            state = "ok" if info["prepared"] else "FAILED"
            details = ", ".join(f"{k}={v}" for k, v in info.items() if k not in ("file", "prepared"))
            print(f"[{state}] {info['file']}: {details}")

    return 0 if all(info["prepared"] for info in results) else 1


if __name__ == "__main__":
    sys.exit(main())
