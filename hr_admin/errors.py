"""
Error taxonomy shared by the workflows, the data access layer and the API.
"""


class HRAdminError(Exception):
    """Base class for every domain error raised by the service."""


class ValidationError(HRAdminError):
    """Malformed or constraint-violating input to a workflow action."""


class InvalidStateError(HRAdminError):
    """Action attempted from a state that forbids it."""


class NotFoundError(HRAdminError):
    """A referenced record id does not resolve."""

    def __init__(self, kind: str, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class SourceUnavailableError(HRAdminError):
    """A record source failed. Recovered inside the data access layer."""
