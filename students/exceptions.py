class RecordNotFound(LookupError):
    """No record exists for the requested code"""

    def __init__(self, code):
        self.code = code
        super().__init__(f"Student with code {code} not found")


class RecordStoreError(Exception):
    """The record store could not be reached or rejected the request"""


class RecordRejected(ValueError):
    """The store refused one record's values, e.g. a field too long for its column"""

    def __init__(self, code, reason):
        self.code = code
        super().__init__(f"Student {code} was rejected: {reason}")
