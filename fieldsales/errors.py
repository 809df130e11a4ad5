"""
Reporting Errors

Exceptions raised by the reporting pipeline. The HTTP layer maps each one
to a status code through ``status_code``.
"""


class ReportError(Exception):
    """Base class for reporting failures"""

    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReportValidationError(ReportError):
    """A request parameter could not be accepted"""

    status_code = 400


class EmployeeNotFound(ReportError):
    """An employee id did not resolve to a known employee"""

    status_code = 404

    def __init__(self, employee_id: str):
        super().__init__(f"Employee not found: {employee_id}")
        self.employee_id = employee_id


class RecordSourceError(ReportError):
    """A single record source failed to deliver rows"""

    status_code = 502

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class RecordSourceUnavailable(ReportError):
    """Every configured record source failed; the caller may retry later"""

    status_code = 503
    retryable = True

    def __init__(self, failures: dict):
        detail = "; ".join(f"{name}: {reason}" for name, reason in failures.items())
        super().__init__(f"No record source available ({detail})")
        self.failures = failures


class ReportCancelled(ReportError):
    """The request was cancelled before aggregation started"""

    status_code = 499
