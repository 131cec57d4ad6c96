"""Exception types raised by the audit engine."""


class AuditEngineError(Exception):
    """Base class for all audit engine errors."""
    pass


class ParsingError(AuditEngineError):
    """The order list could not be turned into any order lines.

    Fatal for a run: no partial reconciliation is attempted.
    """
    pass


class DocumentDecodeError(AuditEngineError):
    """A delivery document could not be decoded.

    Recoverable: the batch runner skips the document and records a warning.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class ReportIntegrityError(AuditEngineError):
    """An exported report does not match the reference taken when it was written."""

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"{location}: {reason}")
