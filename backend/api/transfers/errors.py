"""Transfer errors.

Services raise these; controllers translate them into HTTP responses.
Authorization and expiry outcomes are not errors, see the outcome enums
in the download and transfers services.
"""


class TransferError(Exception):
    """Base class for transfer failures."""


class InvalidInput(TransferError):
    """Bad ttl, missing file or unusable file name."""


class PayloadTooLarge(TransferError):
    """Upload exceeds MAX_FILE_SIZE."""


class ServiceUnavailable(TransferError):
    """Storage or database backend failed, or no free link id was found."""


class TransferConflict(TransferError):
    """Link id already issued. Retried by the upload service, never surfaced."""
