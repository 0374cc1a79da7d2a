"""
Match uploaded spreadsheet rows to existing student records and push the
changes in one bulk call.

Two flows share the matching step:

- profile rows update flat fields (name, level, phone, church);
- degree rows replace the five scores of one term and its total.
"""
import logging
from dataclasses import dataclass, field

from .degrees import DegreeError, HYMNS, AGBYA, TAKS, COPTIC, ATTENDANCE, parse_term, term_payload
from .exceptions import RecordStoreError

logger = logging.getLogger(__name__)

CODE_HEADERS = ('Code', 'code', 'كود الطالب')

PROFILE_HEADERS = {
    'fullName': ('Full Name', 'fullName', 'اسم الطالب'),
    'level': ('Level', 'level', 'المستوى'),
    'phoneNumber': ('Phone Number', 'phoneNumber', 'phone'),
    'church': ('Church', 'church', 'الكنيسة'),
}

DEGREE_HEADERS = {
    HYMNS: ('Hymns', 'hymns'),
    AGBYA: ('Agbya', 'agbya'),
    TAKS: ('Taks', 'taks'),
    COPTIC: ('Coptic', 'coptic'),
    ATTENDANCE: ('Attendance', 'attendance', 'attencance'),
}

DEGREE_TEMPLATE_HEADERS = ['Code', 'Hymns', 'Agbya', 'Taks', 'Coptic', 'Attendance']


class ReconciliationError(Exception):
    pass


class EmptyFile(ReconciliationError):
    def __init__(self):
        super().__init__("The uploaded file contains no rows")


class MissingCodeColumn(ReconciliationError):
    def __init__(self):
        super().__init__(f"No code column found (expected one of: {', '.join(CODE_HEADERS)})")


class ReconciliationTransportError(ReconciliationError):
    """The record store failed while fetching codes or applying the bulk update"""


@dataclass
class ReconciliationResult:
    success_count: int = 0
    failed_codes: list = field(default_factory=list)
    matched: list = field(default_factory=list)
    unmatched: list = field(default_factory=list)
    failures: dict = field(default_factory=dict)

    def to_dict(self):
        return {'successCount': self.success_count, 'failedCodes': list(self.failed_codes)}


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _cell(row, headers):
    for header in headers:
        if header in row:
            return row[header]
    return None


def normalize_code(value):
    """Cell value -> code string; spreadsheet numbers like ``100.0`` become ``"100"``."""
    if _is_blank(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def profile_payload(code, row):
    payload = {'code': code}
    for key, headers in PROFILE_HEADERS.items():
        value = _cell(row, headers)
        if _is_blank(value):
            continue
        payload[key] = value.strip() if isinstance(value, str) else str(value)
    return payload


def degree_payload(code, row, term):
    scores = {subject: _cell(row, headers) for subject, headers in DEGREE_HEADERS.items()}
    payload = {'code': code}
    payload.update(term_payload(term, scores))
    return payload


class BulkReconciler:
    """
    Reconcile uploaded rows against ``store``.

    The set of existing codes is fetched once, right before matching; rows
    whose code is not in it are reported back and never sent.
    """

    def __init__(self, store):
        self.store = store

    def reconcile_profiles(self, rows):
        return self._reconcile(rows, profile_payload)

    def reconcile_degrees(self, rows, term):
        term = parse_term(term)
        return self._reconcile(rows, lambda code, row: degree_payload(code, row, term))

    def partition(self, rows, existing):
        """Split rows with a code into ``(matched, unmatched)`` lists of ``(code, row)``."""
        matched = []
        unmatched = []
        for row in rows:
            code = normalize_code(_cell(row, CODE_HEADERS))
            if not code:
                continue
            if code in existing:
                matched.append((code, row))
            else:
                unmatched.append((code, row))
        return matched, unmatched

    def _existing_codes(self):
        try:
            return set(self.store.get_all())
        except RecordStoreError as e:
            raise ReconciliationTransportError(f"Failed to fetch existing students: {e}") from e

    def _reconcile(self, rows, build_payload):
        if not rows:
            raise EmptyFile()
        if not any(header in row for row in rows for header in CODE_HEADERS):
            raise MissingCodeColumn()

        existing = self._existing_codes()
        matched, unmatched = self.partition(rows, existing)

        result = ReconciliationResult(
            matched=[code for code, _ in matched],
            unmatched=[code for code, _ in unmatched],
        )

        payloads = []
        rejected = []
        for code, row in matched:
            try:
                payloads.append(build_payload(code, row))
            except DegreeError as e:
                rejected.append(code)
                result.failures[code] = str(e)

        response = {'successful': [], 'failed': []}
        if payloads:
            try:
                response = self.store.bulk_update(payloads)
            except RecordStoreError as e:
                raise ReconciliationTransportError(f"Bulk update failed: {e}") from e

        server_failed = []
        for failure in response.get('failed', []):
            code = str((failure.get('user') or {}).get('code', ''))
            server_failed.append(code)
            result.failures[code] = failure.get('reason', '')

        result.success_count = len(response.get('successful', []))
        result.failed_codes = result.unmatched + server_failed + rejected

        logger.info(
            "Reconciled %d rows: %d matched, %d unmatched, %d updated, %d failed",
            len(rows), len(matched), len(unmatched), result.success_count, len(server_failed) + len(rejected),
        )
        return result
