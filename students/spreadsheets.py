import io
import zipfile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill


class SpreadsheetError(ValueError):
    """The uploaded file could not be read as a workbook"""


def _header(value):
    if value is None:
        return ''
    return str(value).strip()


def read_rows(uploaded_file):
    """
    Read the first worksheet into a list of ``{header: value}`` dicts.

    The first row supplies the headers. Rows whose cells are all empty are
    dropped; empty cells inside a row come back as ``None``.
    """
    try:
        wb = load_workbook(uploaded_file, read_only=True, data_only=True)
    except (zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise SpreadsheetError(f"Failed to open Excel file: {e}") from e

    try:
        ws = wb.worksheets[0]
        rows_iter = ws.iter_rows(values_only=True)
        try:
            headers = [_header(h) for h in next(rows_iter)]
        except StopIteration:
            return []

        rows = []
        for values in rows_iter:
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                continue
            row = {}
            for i, header in enumerate(headers):
                if not header:
                    continue
                value = values[i] if i < len(values) else None
                if isinstance(value, str):
                    value = value.strip()
                row[header] = value
            rows.append(row)
        return rows
    finally:
        wb.close()


def build_workbook(rows, sheet_title='Sheet1', headers=None):
    """Write ``rows`` (list of dicts) to an in-memory ``.xlsx`` with a bold header row."""
    if headers is None:
        headers = []
        for row in rows:
            for key in row:
                if key not in headers:
                    headers.append(key)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title[:31]
    ws.append(list(headers))
    header_fill = PatternFill(start_color='D9EAD3', end_color='D9EAD3', fill_type='solid')
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = header_fill

    for row in rows:
        ws.append([row.get(h) for h in headers])

    for idx, header in enumerate(headers, start=1):
        width = max([len(str(header))] + [len(str(row.get(header) or '')) for row in rows])
        ws.column_dimensions[ws.cell(row=1, column=idx).column_letter].width = min(width + 2, 60)

    bio = io.BytesIO()
    wb.save(bio)
    bio.seek(0)
    return bio
