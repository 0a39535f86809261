"""
Text rendering utilities for print-elements.

- Resolve a font from config/env/common locations
- Render wrapped text into a grayscale Pillow surface sized for thermal printers
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

from print_elements.core.config import get_settings

logger = logging.getLogger(__name__)


def _measure_text(font: ImageFont.FreeTypeFont | ImageFont.ImageFont, text: str) -> tuple[int, int]:
    """
    Robust text measurement across Pillow font types.
    Tries getbbox() first, then getmask() as fallback.
    Returns (width, height).
    """
    try:
        bbox = font.getbbox(text)
        return int(bbox[2] - bbox[0]), int(bbox[3] - bbox[1])
    except (AttributeError, TypeError, ValueError):
        mask = font.getmask(text)
        return int(mask.size[0]), int(mask.size[1])


def resolve_font(
    config: Optional[Mapping[str, object]],
    font_size: int,
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """
    Resolve a TTF font to use for rendering, preferring:
    1) config["font_path"] when provided
    2) PRINTELEMENTS_FONT_PATH environment variable
    3) A list of common system font paths (DejaVu, FreeSans, Liberation, Noto)
    Falls back to Pillow's default font if none are found.
    """
    candidates: List[str] = []
    if config:
        val = config.get("font_path")
        if isinstance(val, str) and val.strip():
            candidates.append(val.strip())

    env_path = os.environ.get("PRINTELEMENTS_FONT_PATH")
    if env_path and env_path not in candidates:
        candidates.append(env_path)

    common: Sequence[str] = (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
    )
    for pth in common:
        if pth not in candidates:
            candidates.append(pth)

    for pth in candidates:
        try:
            return ImageFont.truetype(pth, font_size)
        except OSError:
            continue

    logger.debug("No TTF font found; using Pillow's default font")
    try:
        return ImageFont.load_default(size=font_size)
    except TypeError:
        # Pillow < 10.1 has no sized default font
        return ImageFont.load_default()


def wrap_text_improved(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont, max_width: int) -> List[str]:
    """
    Word-wrapping that breaks words wider than `max_width`.

    Args:
        text: The input text to wrap.
        font: Pillow font used for measurement.
        max_width: Maximum pixel width available for text.

    Returns:
        List of wrapped lines.
    """
    if not text:
        return [""]

    words = text.split()
    lines: List[str] = []
    current_line = ""

    for word in words:
        test_line = current_line + (" " if current_line else "") + word
        w, _ = _measure_text(font, test_line)

        if w <= max_width:
            current_line = test_line
            continue
        if current_line:
            lines.append(current_line)
        w_word, _ = _measure_text(font, word)
        if w_word > max_width:
            pieces = _break_long_word(word, font, max_width)
            lines.extend(pieces[:-1])
            current_line = pieces[-1]
        else:
            current_line = word

    if current_line:
        lines.append(current_line)

    return lines or [""]


def _break_long_word(word: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont, max_width: int) -> List[str]:
    """Break a word that doesn't fit on a single line, character by character."""
    result = []
    current = ""
    for char in word:
        test = current + char
        w, _ = _measure_text(font, test)
        if w <= max_width or not current:
            current = test
        else:
            result.append(current)
            current = char

    if current:
        result.append(current)

    return result or [""]


def render_text_surface(text: str, config: Optional[Mapping[str, object]] = None) -> Image.Image:
    """
    Render text into a grayscale Pillow Image, one wrapped block per paragraph.

    Config keys used (with defaults from core.config):
      - rtf_render_width: int
      - rtf_font_size: int
      - font_path: optional, resolved by resolve_font()
      - print_*_margin: ints

    Returns:
        A 'L' mode PIL Image where black=0 and white=255. Blank lines in
        `text` are kept as vertical space.
    """
    cfg = config or get_settings()

    width = int(cfg.get("rtf_render_width", 576))
    font_size = int(cfg.get("rtf_font_size", 24))
    left_margin = int(cfg.get("print_left_margin", 16))
    right_margin = int(cfg.get("print_right_margin", 16))
    top_margin = int(cfg.get("print_top_margin", 12))
    bottom_margin = int(cfg.get("print_bottom_margin", 16))
    line_spacing = max(2, font_size // 4)

    font = resolve_font(cfg, font_size)
    max_text_width = max(1, width - (left_margin + right_margin))

    lines: List[str] = []
    for paragraph in (text or "").splitlines() or [""]:
        lines.extend(wrap_text_improved(paragraph.strip(), font, max_text_width))

    # Derive line height from a representative glyph
    _, line_height = _measure_text(font, "Ag")
    line_height = max(1, line_height)

    img_height = top_margin + bottom_margin + (line_height + line_spacing) * len(lines)
    img = Image.new("L", (int(width), int(img_height)), 255)
    draw = ImageDraw.Draw(img)

    y = top_margin
    for line in lines:
        if line:
            draw.text((left_margin, y), line, font=font, fill=0)
        y += line_height + line_spacing

    logger.debug("Rendered %d text lines onto %dx%d surface", len(lines), width, img_height)
    return img


__all__ = ["render_text_surface", "resolve_font", "wrap_text_improved"]
