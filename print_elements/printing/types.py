"""
Value types for print elements.

- ElementType: the content-type discriminator of an element
- LanguageType: printer command dialects, resolved from free-form tags
- Variant options: one frozen pydantic model per variant arm
- Prepared output: one frozen dataclass per output slot
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from io import BytesIO
from typing import Any, Dict, Optional, Type, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from print_elements.core.errors import InvalidConfiguration


class ElementType(str, Enum):
    RAW = "raw"
    IMAGE = "image"
    PDF = "pdf"
    RTF = "rtf"
    XML = "xml"

    @classmethod
    def resolve(cls, value: Union[str, "ElementType"]) -> "ElementType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidConfiguration(f"Unknown element type: {value!r}") from None


class LanguageType(str, Enum):
    """Printer command dialects a RAW element can target."""

    ZPL = "zpl"
    EPL = "epl"
    CPCL = "cpcl"
    ESCP = "escp"
    ESCPOS = "escpos"
    UNKNOWN = "unknown"

    @classmethod
    def resolve(cls, tag: Union[str, "LanguageType", None]) -> Optional["LanguageType"]:
        """
        Resolve a free-form language tag ("ESC/POS", "zpl2", "EPL2", ...).
        Returns None for None/blank tags and UNKNOWN for unrecognised ones.
        """
        if tag is None or isinstance(tag, cls):
            return tag
        key = re.sub(r"[\s/_\-]", "", str(tag)).lower()
        if not key:
            return None
        return _LANGUAGE_ALIASES.get(key, cls.UNKNOWN)


_LANGUAGE_ALIASES: Dict[str, LanguageType] = {
    "zpl": LanguageType.ZPL,
    "zpl2": LanguageType.ZPL,
    "zplii": LanguageType.ZPL,
    "epl": LanguageType.EPL,
    "epl2": LanguageType.EPL,
    "cpcl": LanguageType.CPCL,
    "escp": LanguageType.ESCP,
    "escp2": LanguageType.ESCP,
    "escpos": LanguageType.ESCPOS,
}

_XML_NAME = re.compile(r"^[A-Za-z_][\w.\-]*$")


# --- Variant options -------------------------------------------------------


class RawOptions(BaseModel):
    """RAW arm: command dialect and thermal dot density."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    language: Optional[LanguageType] = Field(default=None, description="Printer command dialect")
    dot_density: int = Field(default=32, ge=1, le=255, description="Thermal dot density")

    @field_validator("language", mode="before")
    @classmethod
    def _resolve_language(cls, v: Any) -> Optional[LanguageType]:
        return LanguageType.resolve(v)


class ImageOptions(BaseModel):
    """IMAGE arm: placement in device coordinates."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    x: int = Field(default=0, ge=0)
    y: int = Field(default=0, ge=0)


class XmlOptions(BaseModel):
    """XML arm: the tag holding the embedded command data."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tag: str

    @field_validator("tag")
    @classmethod
    def _tag_rules(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("xml tag required")
        if ":" in v:
            raise ValueError(f"xml tag {v} has a namespace prefix; give the local name")
        if not _XML_NAME.match(v):
            raise ValueError(f"invalid xml tag: {v}")
        return v


class DocumentOptions(BaseModel):
    """PDF and RTF carry no variant options."""

    model_config = ConfigDict(frozen=True, extra="forbid")


VariantOptions = Union[RawOptions, ImageOptions, XmlOptions, DocumentOptions]

OPTIONS_FOR_TYPE: Dict[ElementType, Type[BaseModel]] = {
    ElementType.RAW: RawOptions,
    ElementType.IMAGE: ImageOptions,
    ElementType.PDF: DocumentOptions,
    ElementType.RTF: DocumentOptions,
    ElementType.XML: XmlOptions,
}


def options_for(element_type: ElementType, options: Union[VariantOptions, Mapping[str, Any], None]) -> VariantOptions:
    """
    Validate `options` against the arm for `element_type`.

    Accepts None (defaults), a mapping of fields, or an already-built options
    model. Anything that does not fit the variant raises InvalidConfiguration.
    """
    model = OPTIONS_FOR_TYPE[element_type]
    if isinstance(options, BaseModel):
        if type(options) is not model:
            raise InvalidConfiguration(
                f"{type(options).__name__} does not apply to {element_type.name} elements"
            )
        return options  # type: ignore[return-value]
    if options is not None and not isinstance(options, Mapping):
        raise InvalidConfiguration(f"Unsupported options for {element_type.name}: {type(options).__name__}")
    try:
        return model.model_validate(dict(options or {}))  # type: ignore[return-value]
    except ValidationError as e:
        raise InvalidConfiguration(f"Invalid {element_type.name} options: {e}") from e


# --- Prepared output -------------------------------------------------------


@dataclass(frozen=True)
class PreparedBytes:
    """Command bytes ready for emission, with RAW metadata attached."""

    data: bytes
    language: Optional[LanguageType] = None
    dot_density: int = 32

    def close(self) -> None:
        return None


@dataclass(frozen=True)
class RasterImage:
    """A decoded raster image and its placement."""

    image: Image.Image
    x: int = 0
    y: int = 0

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def close(self) -> None:
        self.image.close()


@dataclass(frozen=True)
class RenderedSurface:
    """Rich text rendered onto a measurable grayscale surface."""

    image: Image.Image
    text: str = ""

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def close(self) -> None:
        self.image.close()


@dataclass(frozen=True)
class ParsedDocument:
    """A parsed, paginated PDF document."""

    reader: Any
    stream: BytesIO = field(repr=False, default_factory=BytesIO)

    @property
    def page_count(self) -> int:
        return len(self.reader.pages)

    def close(self) -> None:
        self.stream.close()


PreparedOutput = Union[PreparedBytes, RasterImage, RenderedSurface, ParsedDocument]

OUTPUT_FOR_TYPE: Dict[ElementType, type] = {
    ElementType.RAW: PreparedBytes,
    ElementType.IMAGE: RasterImage,
    ElementType.PDF: ParsedDocument,
    ElementType.RTF: RenderedSurface,
    ElementType.XML: PreparedBytes,
}


def output_matches(element_type: ElementType, output: Any) -> bool:
    """True when `output` fills the slot that belongs to `element_type`."""
    return isinstance(output, OUTPUT_FOR_TYPE[element_type])


__all__ = [
    "DocumentOptions",
    "ElementType",
    "ImageOptions",
    "LanguageType",
    "OPTIONS_FOR_TYPE",
    "OUTPUT_FOR_TYPE",
    "ParsedDocument",
    "PreparedBytes",
    "PreparedOutput",
    "RasterImage",
    "RawOptions",
    "RenderedSurface",
    "VariantOptions",
    "XmlOptions",
    "options_for",
    "output_matches",
]
