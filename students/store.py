"""
Record store for student records.

Records are exchanged as camelCase mappings keyed by the student ``code``.
``update`` takes a partial patch: flat keys replace top-level fields, and keys
of the form ``degree/<term>/<field>`` (or the dotted form) change single degree
leaves without touching their siblings.

Two backends are provided:

- ``DatabaseRecordStore`` keeps records in the Django database.
- ``FirebaseRecordStore`` talks to a Firebase Realtime Database over its REST API.

``get_record_store()`` picks one according to ``settings.RECORD_STORE``.
"""
import logging

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError, DataError, IntegrityError, transaction
from django.utils import timezone

from .degrees import DegreeError, apply_degree_edits, degree_patch, is_degree_path, normalize_degree
from .exceptions import RecordNotFound, RecordRejected, RecordStoreError
from .models import Student

logger = logging.getLogger(__name__)


def generate_code(now=None):
    """Timestamp-derived student code, e.g. ``20240131174502``."""
    return timezone.localtime(now or timezone.now()).strftime('%Y%m%d%H%M%S')


def split_patch(patch):
    """Separate flat record fields from degree path edits."""
    fields = {}
    edits = []
    for key, value in patch.items():
        if key == 'code':
            continue
        if is_degree_path(key):
            edits.append((key, value))
        else:
            fields[key] = value
    return fields, edits


class RecordStore:
    """Interface shared by the store backends."""

    def get_all(self):
        raise NotImplementedError

    def get_by_code(self, code):
        raise NotImplementedError

    def exists(self, code):
        try:
            self.get_by_code(code)
        except RecordNotFound:
            return False
        return True

    def create(self, record):
        raise NotImplementedError

    def update(self, code, patch):
        raise NotImplementedError

    def delete(self, code):
        raise NotImplementedError

    def promote(self, code):
        raise NotImplementedError

    def code_taken(self, code):
        return self.exists(code)

    def next_code(self):
        code = generate_code()
        while self.code_taken(code):
            code = str(int(code) + 1)
        return code

    def bulk_update(self, payloads):
        """
        Apply each payload as an independent patch keyed by its ``code``.

        A payload whose record vanished, whose degree edits are invalid or whose
        values the store rejects is reported under ``failed`` and the rest are
        still applied; transport failures abort the whole call.
        """
        successful = []
        failed = []
        for payload in payloads:
            code = str(payload.get('code') or '')
            try:
                self.update(code, payload)
            except (RecordNotFound, DegreeError, RecordRejected) as e:
                logger.warning("Bulk update skipped %s: %s", code, e)
                failed.append({'user': payload, 'reason': str(e)})
            else:
                successful.append(code)
        return {'successful': successful, 'failed': failed}


class DatabaseRecordStore(RecordStore):
    """Records kept in the ``Student`` table; ``pending`` selects the holding area."""

    def __init__(self, pending=False):
        self.pending = pending

    def _queryset(self):
        return Student.objects.filter(pending=self.pending)

    def _get(self, code, for_update=False):
        qs = self._queryset()
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(code=code)
        except Student.DoesNotExist:
            raise RecordNotFound(code) from None

    def get_all(self):
        try:
            return {student.code: student.to_record() for student in self._queryset()}
        except DatabaseError as e:
            raise RecordStoreError(f"Failed to load students: {e}") from e

    def get_by_code(self, code):
        return self._get(code).to_record()

    def code_taken(self, code):
        # codes are unique across the main list and the holding area
        return Student.objects.filter(code=code).exists()

    def create(self, record):
        code = str(record.get('code') or '') or self.next_code()
        student = Student(code=code, pending=self.pending)
        student.apply_record(record)
        student.degree = normalize_degree(record.get('degree'))
        try:
            student.save(force_insert=True)
        except (DataError, IntegrityError) as e:
            raise RecordRejected(code, e) from e
        except DatabaseError as e:
            raise RecordStoreError(f"Failed to create student {code}: {e}") from e
        logger.info("Created student %s (pending=%s)", code, self.pending)
        return code

    def update(self, code, patch):
        fields, edits = split_patch(patch)
        try:
            with transaction.atomic():
                student = self._get(code, for_update=True)
                if 'degree' in fields:
                    student.degree = normalize_degree(fields.pop('degree'))
                student.apply_record(fields)
                if edits:
                    student.degree = apply_degree_edits(student.degree, edits)
                student.save()
        except (DataError, IntegrityError) as e:
            raise RecordRejected(code, e) from e
        except DatabaseError as e:
            raise RecordStoreError(f"Failed to update student {code}: {e}") from e

    def delete(self, code):
        deleted, _ = self._queryset().filter(code=code).delete()
        if not deleted:
            raise RecordNotFound(code)
        logger.info("Deleted student %s (pending=%s)", code, self.pending)

    def promote(self, code):
        updated = Student.objects.filter(code=code, pending=True).update(pending=False)
        if not updated:
            raise RecordNotFound(code)
        logger.info("Promoted pending student %s", code)


class FirebaseRecordStore(RecordStore):
    """
    Firebase Realtime Database over REST.

    Records live under ``/<collection>/<code>``; partial updates are sent as a
    PATCH whose keys may be slash paths, which Firebase applies leaf by leaf.
    """

    MAIN_COLLECTION = 'users'
    PENDING_COLLECTION = 'pendingUsers'

    def __init__(self, base_url, auth='', collection=MAIN_COLLECTION, timeout=15, session=None):
        if not base_url:
            raise ImproperlyConfigured("FIREBASE_DATABASE_URL is not set")
        self.base_url = base_url.rstrip('/')
        self.auth = auth
        self.collection = collection
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, *parts):
        return f"{self.base_url}/{'/'.join(parts)}.json"

    def _request(self, method, url, payload=None):
        params = {'auth': self.auth} if self.auth else None
        try:
            response = self.session.request(method, url, params=params, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return response.json() if response.content else None
        except requests.RequestException as e:
            logger.error("Firebase %s %s failed: %s", method, url, e)
            raise RecordStoreError(f"Record store request failed: {e}") from e
        except ValueError as e:
            logger.error("Firebase %s %s returned a non-JSON body: %s", method, url, e)
            raise RecordStoreError(f"Record store returned an unreadable response: {e}") from e

    @staticmethod
    def _with_code(code, record):
        record = dict(record or {})
        record.setdefault('code', code)
        record['degree'] = normalize_degree(record.get('degree'))
        return record

    def get_all(self):
        data = self._request('GET', self._url(self.collection)) or {}
        return {code: self._with_code(code, record) for code, record in data.items() if record}

    def get_by_code(self, code):
        data = self._request('GET', self._url(self.collection, code))
        if data is None:
            raise RecordNotFound(code)
        return self._with_code(code, data)

    def create(self, record):
        code = str(record.get('code') or '') or self.next_code()
        body = dict(record)
        body['code'] = code
        body['degree'] = normalize_degree(record.get('degree'))
        self._request('PUT', self._url(self.collection, code), body)
        logger.info("Created student %s in %s", code, self.collection)
        return code

    def update(self, code, patch):
        fields, edits = split_patch(patch)
        current = self.get_by_code(code)
        body = dict(fields)
        if 'degree' in body:
            body['degree'] = apply_degree_edits(body['degree'], edits)
        elif edits:
            _, path_patch = degree_patch(current['degree'], edits)
            body.update(path_patch)
        if body:
            self._request('PATCH', self._url(self.collection, code), body)

    def delete(self, code):
        self.get_by_code(code)
        self._request('DELETE', self._url(self.collection, code))
        logger.info("Deleted student %s from %s", code, self.collection)

    def promote(self, code):
        record = self.get_by_code(code)
        self._request('PUT', self._url(self.MAIN_COLLECTION, code), record)
        self._request('DELETE', self._url(self.collection, code))
        logger.info("Promoted pending student %s", code)


def get_record_store(pending=False):
    config = getattr(settings, 'RECORD_STORE', {})
    backend = config.get('BACKEND', 'database')
    if backend == 'database':
        return DatabaseRecordStore(pending=pending)
    if backend == 'firebase':
        return FirebaseRecordStore(
            config.get('FIREBASE_URL', ''),
            auth=config.get('FIREBASE_AUTH', ''),
            collection=FirebaseRecordStore.PENDING_COLLECTION if pending else FirebaseRecordStore.MAIN_COLLECTION,
            timeout=config.get('TIMEOUT', 15),
        )
    raise ImproperlyConfigured(f"Unknown RECORD_STORE backend '{backend}'")


class StudentCollection:
    """
    The record set a list view works on: fetched once, reused until
    ``invalidate()``, then fetched fresh on the next access.
    """

    def __init__(self, store):
        self.store = store
        self._records = None

    def fetch(self):
        self._records = self.store.get_all()
        return self._records

    def invalidate(self):
        self._records = None

    @property
    def records(self):
        if self._records is None:
            self.fetch()
        return self._records

    def codes(self):
        return set(self.records)

    def values(self):
        return list(self.records.values())
