from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from PIL import Image, ImageDraw, ImageFont

from catechism_app.export.colors import UnsupportedColor, parse_color
from catechism_app.export.spreadsheet import ExportError, WorksheetData

logger = logging.getLogger(__name__)

CHARACTER_WIDTH = 7
ROW_HEIGHT = 22
PADDING = 16
CELL_PADDING = 4


@dataclass(frozen=True)
class ReportTheme:
    background: str = "#ffffff"
    text: str = "oklch(0.21 0.034 264.7)"
    muted_text: str = "oklch(0.55 0.027 264.4)"
    border: str = "oklch(0.87 0.02 252.9)"
    header_background: str = "oklch(0.979 0.021 166.1)"
    present_text: str = "oklch(0.596 0.145 163.2)"


def _load_font(size: int, font_path: Path | None) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    if font_path is not None:
        try:
            return ImageFont.truetype(str(font_path), size)
        except OSError:
            logger.warning("Could not load font %s, using the default font", font_path)
    return ImageFont.load_default(size=size)


def _resolve_palette(theme: ReportTheme) -> dict[str, tuple[int, int, int]]:
    palette = {}
    for name in ("background", "text", "muted_text", "border", "header_background", "present_text"):
        try:
            palette[name] = parse_color(getattr(theme, name))
        except UnsupportedColor as exc:
            raise ExportError(f"Theme color {name!r} is invalid: {exc}") from exc
    return palette


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def render_report_image(
    sheet: WorksheetData,
    path: Path,
    *,
    theme: ReportTheme | None = None,
    scale: int = 2,
    font_path: Path | None = None,
) -> Path:
    """Draw the worksheet table onto a PNG, titles above and summary lines below."""
    if sheet.data_row_count == 0:
        raise ExportError("There is no data to export.")

    palette = _resolve_palette(theme or ReportTheme())
    scale = max(1, int(scale))

    header_index = sheet.header_row_index
    header = sheet.rows[header_index]
    body = sheet.rows[header_index + 1 : header_index + 1 + sheet.data_row_count]
    footer = [row for row in sheet.rows[header_index + 1 + sheet.data_row_count :] if row]

    column_widths = [width * CHARACTER_WIDTH * scale for width in sheet.column_widths[: len(header)]]
    row_height = ROW_HEIGHT * scale
    padding = PADDING * scale
    table_width = sum(column_widths)
    title_height = row_height * len(sheet.title_lines)
    table_height = row_height * (len(body) + 1)
    footer_height = row_height * len(footer)

    width = table_width + padding * 2
    height = padding * 3 + title_height + table_height + footer_height

    image = Image.new("RGB", (width, height), palette["background"])
    draw = ImageDraw.Draw(image)
    font = _load_font(12 * scale, font_path)
    title_font = _load_font(15 * scale, font_path)

    y = padding
    for index, line in enumerate(sheet.title_lines):
        color = palette["text"] if index == 0 else palette["muted_text"]
        draw.text((padding, y), line, fill=color, font=title_font if index == 0 else font)
        y += row_height

    y += padding // 2
    for row_index, values in enumerate([header, *body]):
        x = padding
        is_header = row_index == 0
        for column_index, column_width in enumerate(column_widths):
            value = _text(values[column_index]) if column_index < len(values) else ""
            box = (x, y, x + column_width, y + row_height)
            if is_header:
                draw.rectangle(box, fill=palette["header_background"])
            draw.rectangle(box, outline=palette["border"], width=max(1, scale // 2))

            fill = palette["present_text"] if value == "X" and not is_header else palette["text"]
            text_width = draw.textlength(value, font=font)
            text_x = x + max(CELL_PADDING * scale, (column_width - text_width) / 2)
            text_y = y + (row_height - 12 * scale) / 2
            draw.text((text_x, text_y), value, fill=fill, font=font)
            x += column_width
        y += row_height

    y += padding
    for values in footer:
        line = ": ".join(_text(value) for value in values)
        draw.text((padding, y), line, fill=palette["text"], font=font)
        y += row_height

    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    logger.info("Rendered %s (%dx%d)", path, width, height)
    return path
