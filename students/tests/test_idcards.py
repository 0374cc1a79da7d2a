import io
import zipfile
from unittest import mock

from django.test import SimpleTestCase, override_settings
from PIL import ImageFont

from students.idcards import (
    DEFAULT_FONT, _font, _load_font, archive_entry_name, build_archive, card_filename,
)


class FontTests(SimpleTestCase):
    def setUp(self):
        _load_font.cache_clear()
        self.addCleanup(_load_font.cache_clear)

    @override_settings(ID_CARD={'FONT_PATH': '/fonts/Amiri-Regular.ttf'})
    def test_configured_font_is_used(self):
        font = object()
        with mock.patch.object(ImageFont, 'truetype', return_value=font) as truetype:
            self.assertIs(_font(20), font)
        truetype.assert_called_once_with('/fonts/Amiri-Regular.ttf', 20)

    @override_settings(ID_CARD={'FONT_PATH': '/missing.ttf'})
    def test_unreadable_font_falls_back_to_arabic_capable_default(self):
        font = object()
        with mock.patch.object(ImageFont, 'truetype', side_effect=[OSError('missing'), font]) as truetype:
            with self.assertLogs('students.idcards', 'WARNING'):
                self.assertIs(_font(20), font)
        self.assertEqual(truetype.call_args.args, (DEFAULT_FONT, 20))

    @override_settings(ID_CARD={'FONT_PATH': ''})
    def test_bitmap_font_only_when_no_truetype_font_exists(self):
        fallback = object()
        with mock.patch.object(ImageFont, 'truetype', side_effect=OSError('missing')) as truetype, \
                mock.patch.object(ImageFont, 'load_default', return_value=fallback):
            with self.assertLogs('students.idcards', 'ERROR'):
                self.assertIs(_font(20), fallback)
        truetype.assert_called_once_with(DEFAULT_FONT, 20)


class ArchiveTests(SimpleTestCase):
    def test_names(self):
        record = {'code': '100', 'fullName': 'Mina Samir'}
        self.assertEqual(card_filename(record), 'ID_100.png')
        self.assertEqual(archive_entry_name(record), 'Mina Samir_100.png')

    def test_build_archive(self):
        bio = build_archive([('a_1.png', b'one'), ('b_2.png', b'two')])
        with zipfile.ZipFile(io.BytesIO(bio.getvalue())) as zf:
            self.assertEqual(zf.namelist(), ['a_1.png', 'b_2.png'])
            self.assertEqual(zf.read('b_2.png'), b'two')
