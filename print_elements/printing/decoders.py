"""
Format decoders used by the element preparer.

Every decoder has the same shape:

    decoder(source: bytes, encoding: str, options, settings) -> PreparedOutput

and raises InvalidSourceData when the bytes cannot be interpreted. Decoders
run synchronously on the preparer's thread and never touch the element.
"""

from __future__ import annotations

import base64
import binascii
import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from io import BytesIO
from typing import Any, Callable, Dict

from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from striprtf.striprtf import rtf_to_text

from print_elements.core.errors import InvalidSourceData
from print_elements.printing.render import render_text_surface
from print_elements.printing.types import (
    DocumentOptions,
    ElementType,
    ImageOptions,
    ParsedDocument,
    PreparedBytes,
    PreparedOutput,
    RasterImage,
    RawOptions,
    RenderedSurface,
    XmlOptions,
)

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes, str, Any, Mapping[str, Any]], PreparedOutput]


def decode_raw(source: bytes, encoding: str, options: RawOptions, settings: Mapping[str, Any]) -> PreparedBytes:
    """Pass raw command bytes through, attaching dialect and dot density."""
    return PreparedBytes(data=bytes(source), language=options.language, dot_density=options.dot_density)


def decode_image(source: bytes, encoding: str, options: ImageOptions, settings: Mapping[str, Any]) -> RasterImage:
    """Decode image bytes into a fully loaded Pillow image."""
    try:
        img = Image.open(BytesIO(source))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise InvalidSourceData(f"Cannot decode image: {e}") from e
    logger.debug("Decoded %s image %dx%d mode=%s", img.format, img.width, img.height, img.mode)
    return RasterImage(image=img, x=options.x, y=options.y)


def decode_pdf(source: bytes, encoding: str, options: DocumentOptions, settings: Mapping[str, Any]) -> ParsedDocument:
    """Parse PDF bytes into a paginated document handle."""
    if b"%PDF-" not in source[:1024]:
        raise InvalidSourceData("Not a PDF document: missing %PDF header")
    stream = BytesIO(source)
    try:
        reader = PdfReader(stream)
        if reader.is_encrypted and not reader.decrypt(""):
            raise InvalidSourceData("PDF document is password protected")
        pages = len(reader.pages)
    except (PdfReadError, OSError, ValueError, KeyError, TypeError) as e:
        stream.close()
        raise InvalidSourceData(f"Cannot parse PDF document: {e}") from e
    if pages == 0:
        stream.close()
        raise InvalidSourceData("PDF document has no pages")
    logger.debug("Parsed PDF document with %d pages", pages)
    return ParsedDocument(reader=reader, stream=stream)


def decode_rtf(source: bytes, encoding: str, options: DocumentOptions, settings: Mapping[str, Any]) -> RenderedSurface:
    """Render rich text onto a measurable grayscale surface."""
    try:
        markup = source.decode(encoding, errors="replace")
    except LookupError as e:
        raise InvalidSourceData(f"Unknown encoding {encoding!r}") from e
    if not markup.lstrip().startswith("{\\rtf"):
        raise InvalidSourceData("Not an RTF document: missing {\\rtf header")
    try:
        text = rtf_to_text(markup)
    except (ValueError, IndexError) as e:
        raise InvalidSourceData(f"Cannot read RTF document: {e}") from e
    surface = render_text_surface(text, settings)
    return RenderedSurface(image=surface, text=text)


def _local_name(tag: Any) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def decode_xml(source: bytes, encoding: str, options: XmlOptions, settings: Mapping[str, Any]) -> PreparedBytes:
    """
    Extract base64 command data from the element named by the XML tag.

    The root element itself may carry the tag; otherwise the first matching
    descendant is used. Tags match on local name, so namespaced documents
    work without a prefix map.
    """
    try:
        root = ET.fromstring(source)
    except ET.ParseError as e:
        raise InvalidSourceData(f"Malformed XML: {e}") from e

    node = next((el for el in root.iter() if _local_name(el.tag) == options.tag), None)
    if node is None:
        raise InvalidSourceData(f"XML tag <{options.tag}> not found")
    payload = "".join((node.text or "").split())
    if not payload:
        raise InvalidSourceData(f"XML tag <{options.tag}> is empty")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSourceData(f"XML tag <{options.tag}> is not base64 data: {e}") from e
    return PreparedBytes(data=data)


DEFAULT_DECODERS: Dict[ElementType, Decoder] = {
    ElementType.RAW: decode_raw,
    ElementType.IMAGE: decode_image,
    ElementType.PDF: decode_pdf,
    ElementType.RTF: decode_rtf,
    ElementType.XML: decode_xml,
}


__all__ = [
    "DEFAULT_DECODERS",
    "Decoder",
    "decode_image",
    "decode_pdf",
    "decode_raw",
    "decode_rtf",
    "decode_xml",
]
