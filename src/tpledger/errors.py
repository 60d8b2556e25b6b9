"""Error taxonomy for the trust & performance ledger.

Every error is a precondition failure raised before any state is mutated.
"""


class LedgerError(Exception):
    """Base class for ledger precondition failures."""

    default_message = "Ledger operation rejected."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class Unauthorized(LedgerError):
    """Caller is not the ledger's controlling identity."""

    default_message = "Method is private."


class InvalidSigner(LedgerError):
    """Caller is not a registered source."""

    default_message = "Invalid signer wallet."


class AlreadyExists(LedgerError):
    """Source identity is already registered."""

    default_message = "Source already exists."


class NotFound(LedgerError):
    """Source identity is not registered."""

    default_message = "Source not found."


class SubjectNotFound(LedgerError):
    """No action sequence exists for the subject DID."""

    default_message = "AccountDID not found."


class SourceNotFound(LedgerError):
    """Source has never recorded an action."""

    default_message = "Source not found."
