"""Infrastructure faults raised to the API boundary.

Business outcomes (validation, authorization, conflict) are returned as
result dicts and never raised.
"""


class BookingError(Exception):
    """Base class for faults that abort a booking operation"""

    status_code = 500


class JobNotFoundError(BookingError):
    status_code = 404

    def __init__(self, job_id):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class UserNotFoundError(BookingError):
    status_code = 404

    def __init__(self, ref):
        self.ref = ref
        super().__init__(f"User not found: {ref}")
