import pytest

from print_elements.core.errors import InvalidConfiguration
from print_elements.printing import types as t


@pytest.mark.parametrize(
    "tag,expected",
    [
        ("escpos", t.LanguageType.ESCPOS),
        ("ESC/POS", t.LanguageType.ESCPOS),
        ("esc-p2", t.LanguageType.ESCP),
        ("ZPLII", t.LanguageType.ZPL),
        ("zpl2", t.LanguageType.ZPL),
        ("EPL2", t.LanguageType.EPL),
        (" cpcl ", t.LanguageType.CPCL),
        ("postscript", t.LanguageType.UNKNOWN),
    ],
)
def test_language_tags_resolve(tag, expected):
    assert t.LanguageType.resolve(tag) is expected


def test_blank_language_tag_is_none():
    assert t.LanguageType.resolve(None) is None
    assert t.LanguageType.resolve("  ") is None


def test_element_type_resolve():
    assert t.ElementType.resolve("PDF") is t.ElementType.PDF
    assert t.ElementType.resolve(t.ElementType.XML) is t.ElementType.XML
    with pytest.raises(InvalidConfiguration):
        t.ElementType.resolve("postscript")


def test_options_defaults_per_variant():
    raw = t.options_for(t.ElementType.RAW, None)
    assert isinstance(raw, t.RawOptions)
    assert raw.dot_density == 32 and raw.language is None

    img = t.options_for(t.ElementType.IMAGE, None)
    assert (img.x, img.y) == (0, 0)

    assert isinstance(t.options_for(t.ElementType.PDF, None), t.DocumentOptions)
    assert isinstance(t.options_for(t.ElementType.RTF, {}), t.DocumentOptions)


def test_raw_options_resolve_language():
    opts = t.options_for(t.ElementType.RAW, {"language": "escpos", "dot_density": 24})
    assert opts.language is t.LanguageType.ESCPOS
    assert opts.dot_density == 24


@pytest.mark.parametrize(
    "etype,options",
    [
        (t.ElementType.XML, None),  # tag required
        (t.ElementType.XML, {"tag": "  "}),
        (t.ElementType.XML, {"tag": "1bad"}),
        (t.ElementType.IMAGE, {"language": "zpl"}),
        (t.ElementType.IMAGE, {"x": -1}),
        (t.ElementType.RAW, {"dot_density": 0}),
        (t.ElementType.RAW, {"x": 10}),
        (t.ElementType.PDF, {"tag": "data"}),
        (t.ElementType.RAW, t.ImageOptions(x=1, y=2)),
        (t.ElementType.IMAGE, "x=1"),
        (t.ElementType.XML, {"tag": "p:data"}),
    ],
)
def test_mismatched_options_rejected(etype, options):
    with pytest.raises(InvalidConfiguration):
        t.options_for(etype, options)


def test_options_are_frozen():
    opts = t.RawOptions(dot_density=24)
    with pytest.raises(Exception):
        opts.dot_density = 33  # type: ignore[misc]


def test_output_matches_slot():
    data = t.PreparedBytes(data=b"\x1b@")
    assert t.output_matches(t.ElementType.RAW, data)
    assert t.output_matches(t.ElementType.XML, data)
    assert not t.output_matches(t.ElementType.PDF, data)
