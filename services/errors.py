# services/errors.py
"""Caller errors raised by the phase engine. Denials are returned, not raised."""


class PhaseEngineError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class StudentNotFound(PhaseEngineError):
    status_code = 404

    def __init__(self, student_id):
        super().__init__(f"Student not found: {student_id}")
        self.student_id = student_id


class CountryProfileNotFound(PhaseEngineError):
    status_code = 404

    def __init__(self, student_id, country):
        super().__init__(f"Country profile not found for student {student_id}: {country}")
        self.student_id = student_id
        self.country = country


class InvalidRequest(PhaseEngineError):
    pass
