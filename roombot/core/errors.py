"""Error taxonomy shared by the parser, policy, store and command handler.

Every subclass of :class:`BookingError` except :class:`StoreFailure` is an
expected business outcome whose message is shown to the requester as is.
"""


class BookingError(Exception):
    code = "BOOKING_ERROR"

    def __init__(self, message: str, detail: str = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ParseError(BookingError):
    code = "PARSE_ERROR"


class PolicyViolation(BookingError):
    code = "POLICY_VIOLATION"


class NotFound(BookingError):
    code = "NOT_FOUND"


class Unauthorized(BookingError):
    code = "UNAUTHORIZED"


class Conflict(BookingError):
    code = "CONFLICT"


class InvalidStatus(BookingError):
    code = "INVALID_STATUS"


class StoreFailure(BookingError):
    """The datastore failed; the message is internal and never shown to users."""

    code = "STORE_FAILURE"
