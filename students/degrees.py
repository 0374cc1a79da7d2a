"""
Per-term subject scores ("degrees") attached to a student record.

A degree structure looks like::

    {
        "firstTerm":  {"agbya": 0, "coptic": 0, "hymns": 0, "taks": 0, "attencance": 0, "total": 0},
        "secondTerm": {...},
        "thirdTerm":  {...},
    }

``attencance`` is the stored key for the attendance score and must stay spelled
that way, existing records use it. ``total`` is derived and is always recomputed
from the five subjects of its term.
"""
import copy
from enum import Enum


class DegreeError(ValueError):
    """Base class for degree editing errors"""


class InvalidPath(DegreeError):
    """The path does not resolve to a term/subject leaf"""


class InvalidTerm(DegreeError):
    """The path names a term that does not exist"""


class InvalidScore(DegreeError):
    """The value is not a number"""


class Term(str, Enum):
    FIRST = 'firstTerm'
    SECOND = 'secondTerm'
    THIRD = 'thirdTerm'


AGBYA = 'agbya'
COPTIC = 'coptic'
HYMNS = 'hymns'
TAKS = 'taks'
ATTENDANCE = 'attencance'
TOTAL = 'total'

SUBJECTS = (AGBYA, COPTIC, HYMNS, TAKS, ATTENDANCE)
FIELDS = SUBJECTS + (TOTAL,)


class DegreePath(Enum):
    """Every addressable leaf of the degree structure."""
    FIRST_TERM_AGBYA = (Term.FIRST, AGBYA)
    FIRST_TERM_COPTIC = (Term.FIRST, COPTIC)
    FIRST_TERM_HYMNS = (Term.FIRST, HYMNS)
    FIRST_TERM_TAKS = (Term.FIRST, TAKS)
    FIRST_TERM_ATTENDANCE = (Term.FIRST, ATTENDANCE)
    FIRST_TERM_TOTAL = (Term.FIRST, TOTAL)
    SECOND_TERM_AGBYA = (Term.SECOND, AGBYA)
    SECOND_TERM_COPTIC = (Term.SECOND, COPTIC)
    SECOND_TERM_HYMNS = (Term.SECOND, HYMNS)
    SECOND_TERM_TAKS = (Term.SECOND, TAKS)
    SECOND_TERM_ATTENDANCE = (Term.SECOND, ATTENDANCE)
    SECOND_TERM_TOTAL = (Term.SECOND, TOTAL)
    THIRD_TERM_AGBYA = (Term.THIRD, AGBYA)
    THIRD_TERM_COPTIC = (Term.THIRD, COPTIC)
    THIRD_TERM_HYMNS = (Term.THIRD, HYMNS)
    THIRD_TERM_TAKS = (Term.THIRD, TAKS)
    THIRD_TERM_ATTENDANCE = (Term.THIRD, ATTENDANCE)
    THIRD_TERM_TOTAL = (Term.THIRD, TOTAL)

    @property
    def term(self):
        return self.value[0]

    @property
    def field(self):
        return self.value[1]

    @property
    def is_total(self):
        return self.field == TOTAL

    def key(self, separator='/'):
        return separator.join(('degree', self.term.value, self.field))

    @classmethod
    def of(cls, term, field):
        term = parse_term(term)
        for member in cls:
            if member.term is term and member.field == field:
                return member
        raise InvalidPath(f"Unknown degree field '{field}'")

    @classmethod
    def parse(cls, path):
        """Resolve ``degree.<term>.<field>`` (or the ``/`` form) to a member."""
        if isinstance(path, cls):
            return path
        if not isinstance(path, str) or not path:
            raise InvalidPath(f"Invalid degree path: {path!r}")
        separator = '/' if '/' in path else '.'
        parts = path.strip(separator).split(separator)
        if len(parts) != 3 or parts[0] != 'degree':
            raise InvalidPath(f"Invalid degree path: {path!r}")
        return cls.of(parts[1], parts[2])


def parse_term(value):
    if isinstance(value, Term):
        return value
    try:
        return Term(value)
    except ValueError:
        raise InvalidTerm(f"Unknown term '{value}'") from None


def is_degree_path(key):
    return isinstance(key, str) and (key.startswith('degree/') or key.startswith('degree.'))


def to_score(value):
    """Coerce a score to a number; integral values come back as ``int``."""
    if value is None or value == '':
        return 0
    if isinstance(value, bool):
        raise InvalidScore(f"Invalid score: {value!r}")
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            raise InvalidScore(f"Invalid score: {value!r}") from None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def term_total(scores):
    """Sum of the five subjects; absent subjects count as zero."""
    return sum(to_score(scores.get(subject)) for subject in SUBJECTS)


def empty_term():
    term = {subject: 0 for subject in SUBJECTS}
    term[TOTAL] = 0
    return term


def empty_degree():
    return {term.value: empty_term() for term in Term}


def normalize_degree(degree):
    """
    Return a full copy of ``degree``: every term present and missing subjects
    set to 0. Values already present are copied as they are; a term without a
    ``total`` gets one derived from its subjects.
    """
    normalized = {}
    source = degree or {}
    for term in Term:
        values = copy.deepcopy(source.get(term.value) or {})
        for subject in SUBJECTS:
            values.setdefault(subject, 0)
        if TOTAL not in values:
            values[TOTAL] = term_total(values)
        normalized[term.value] = values
    return normalized


def _edit_items(edits):
    if hasattr(edits, 'items'):
        return list(edits.items())
    return list(edits)


def apply_degree_edits(degree, edits):
    """
    Apply ``(path, value)`` edits and return a new degree structure.

    Only the addressed leaves change. The ``total`` of every term that received
    an edit is recomputed afterwards, so an edit to a total path is overridden by
    the derived value.
    """
    resolved = [(DegreePath.parse(path), value) for path, value in _edit_items(edits)]
    updated = normalize_degree(degree)
    touched = set()
    for path, value in resolved:
        updated[path.term.value][path.field] = to_score(value)
        touched.add(path.term)
    for term in touched:
        updated[term.value][TOTAL] = term_total(updated[term.value])
    return updated


def degree_patch(degree, edits):
    """
    Resolve ``edits`` against ``degree`` and return ``(updated, patch)`` where
    ``patch`` holds slash-path keys for the edited leaves and the recomputed
    totals of their terms. Applying ``patch`` to a stored record leaves every
    other leaf untouched.
    """
    items = _edit_items(edits)
    updated = apply_degree_edits(degree, items)
    patch = {}
    terms = set()
    for path, _ in items:
        path = DegreePath.parse(path)
        terms.add(path.term)
        if not path.is_total:
            patch[path.key()] = updated[path.term.value][path.field]
    for term in terms:
        patch[DegreePath.of(term, TOTAL).key()] = updated[term.value][TOTAL]
    return updated, patch


def term_payload(term, scores):
    """Slash-path patch for all five subjects of one term plus its total."""
    term = parse_term(term)
    values = {subject: to_score(scores.get(subject)) for subject in SUBJECTS}
    payload = {DegreePath.of(term, subject).key(): values[subject] for subject in SUBJECTS}
    payload[DegreePath.of(term, TOTAL).key()] = term_total(values)
    return payload
