"""
Printable student ID cards: a credit-card sized PNG with the student's name,
level, class details and a QR code of the student code.
"""
import io
import logging
import zipfile
from functools import lru_cache

import qrcode
from django.conf import settings
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

CARD_WIDTH_MM = 85.6
CARD_HEIGHT_MM = 53.98
BAND_HEIGHT_MM = 10

BAND_START = (13, 148, 136)
BAND_END = (132, 204, 22)
NAME_COLOR = (59, 130, 246)
LABEL_COLOR = (30, 64, 175)
VALUE_COLOR = (0, 0, 0)

# DejaVu Sans covers Arabic; a bare file name is looked up in the system font directories
DEFAULT_FONT = 'DejaVuSans.ttf'

LABELS = {
    'level': 'المرحلة',
    'location': 'مكان الفصل',
    'time': 'الميعاد',
    'saint': 'شفيع الفصل',
}


def _card_config():
    defaults = {'TIME': '5:00 م', 'FONT_PATH': '', 'DPI': 300}
    defaults.update(getattr(settings, 'ID_CARD', {}))
    return defaults


def _mm(value, dpi):
    return int(round(value / 25.4 * dpi))


@lru_cache(maxsize=None)
def _load_font(path, size):
    for candidate in dict.fromkeys(filter(None, [path, DEFAULT_FONT])):
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            logger.warning("ID card font %s could not be loaded", candidate)
    logger.error("No TrueType font with Arabic glyphs found for ID cards, set ID_CARD_FONT_PATH")
    return ImageFont.load_default(size=size)


def _font(size):
    return _load_font(_card_config()['FONT_PATH'], size)


def _band(draw, top, width, height):
    for x in range(width):
        ratio = x / max(width - 1, 1)
        color = tuple(int(a + (b - a) * ratio) for a, b in zip(BAND_START, BAND_END))
        draw.line([(x, top), (x, top + height - 1)], fill=color)


def _qr_image(code, size):
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_H, border=1)
    qr.add_data(code or '0000')
    qr.make(fit=True)
    img = qr.make_image(fill_color='black', back_color='white').get_image().convert('RGB')
    return img.resize((size, size), Image.NEAREST)


def card_lines(record, time=None, saint='', location=''):
    """Label/value rows shown under the name; empty optional rows are left out."""
    lines = [(LABELS['level'], record.get('level') or '')]
    if location:
        lines.append((LABELS['location'], location))
    if time:
        lines.append((LABELS['time'], time))
    if saint:
        lines.append((LABELS['saint'], saint))
    return lines


def render_card(record, time=None, saint='', location=''):
    """Draw one card for ``record`` and return it as PNG bytes."""
    config = _card_config()
    dpi = int(config['DPI'])
    if time is None:
        time = config['TIME']

    width, height = _mm(CARD_WIDTH_MM, dpi), _mm(CARD_HEIGHT_MM, dpi)
    band = _mm(BAND_HEIGHT_MM, dpi)
    margin = _mm(5, dpi)

    img = Image.new('RGB', (width, height), 'white')
    draw = ImageDraw.Draw(img)
    _band(draw, 0, width, band)
    _band(draw, height - band, width, band)

    code = str(record.get('code') or '')
    qr_size = _mm(22, dpi)
    qr_top = band + (height - 2 * band - qr_size) // 2 - _mm(2, dpi)
    img.paste(_qr_image(code, qr_size), (margin, qr_top))

    code_font = _font(_mm(3.2, dpi))
    code_width = draw.textlength(code, font=code_font)
    draw.text((margin + (qr_size - code_width) / 2, qr_top + qr_size + _mm(1, dpi)), code,
              font=code_font, fill=VALUE_COLOR)

    # text column is right-aligned, next to the right edge
    right = width - margin
    y = band + _mm(3, dpi)
    name_font = _font(_mm(4.2, dpi))
    draw.text((right, y), record.get('fullName') or '', font=name_font, fill=NAME_COLOR, anchor='ra')
    y += _mm(7, dpi)

    label_font = _font(_mm(3.5, dpi))
    value_font = _font(_mm(3.2, dpi))
    label_width = _mm(25, dpi)
    for label, value in card_lines(record, time=time, saint=saint, location=location):
        draw.text((right, y), label, font=label_font, fill=LABEL_COLOR, anchor='ra')
        draw.text((right - label_width, y), str(value), font=value_font, fill=VALUE_COLOR, anchor='ra')
        y += _mm(5.5, dpi)

    out = io.BytesIO()
    img.save(out, format='PNG', dpi=(dpi, dpi))
    return out.getvalue()


def card_filename(record):
    return f"ID_{record.get('code')}.png"


def archive_entry_name(record):
    return f"{record.get('fullName') or ''}_{record.get('code')}.png"


def build_archive(cards):
    """Zip ``(entry_name, png_bytes)`` pairs into an in-memory archive."""
    bio = io.BytesIO()
    with zipfile.ZipFile(bio, 'w', zipfile.ZIP_DEFLATED) as zf:
        for name, data in cards:
            zf.writestr(name, data)
    bio.seek(0)
    return bio
