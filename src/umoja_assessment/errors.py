"""Error taxonomy for the assessment SDK.

Every failure a service operation can report is an ``UmojaError`` subclass
carrying the HTTP status it maps to.  The server installs one exception
handler for the whole hierarchy, so routes stay focused on the happy path.

``message`` is safe to show to the end user.  ``details`` carries the
underlying cause (e.g. the upstream exception text) and is only attached to
responses where the original contract exposed it.
"""


class UmojaError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def public_message(self) -> str:
        """Message returned to the client (may differ from the log message)."""
        return self.message


class UnauthorizedError(UmojaError):
    """No identity, or identity that could not be trusted."""

    status_code = 401


class NotFoundError(UmojaError):
    """A user, profile, child, session, or question does not exist."""

    status_code = 404


class InvalidInputError(UmojaError):
    """Missing or malformed input fields."""

    status_code = 400


class ConflictError(UmojaError):
    """The operation clashes with existing state."""

    status_code = 409


class UpstreamError(UmojaError):
    """The LLM (or another external dependency) failed or misbehaved."""

    status_code = 500

    @property
    def public_message(self) -> str:
        return "An internal error occurred."


class ConfigurationError(UmojaError):
    """A required credential or endpoint is not configured."""

    status_code = 500

    @property
    def public_message(self) -> str:
        return "Server configuration error. Please check server logs."


# --- Guardian link outcomes ---
# Raised by the link resolver; the verify-child route reports them as a
# soft failure (``success: false``) rather than an HTTP error.


class ChildNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__(
            "No child found with the provided details. "
            "Please check the information and try again."
        )


class AmbiguousChildError(ConflictError):
    def __init__(self, count: int) -> None:
        super().__init__(
            "Multiple children found with these details. Please provide more "
            "specific information like school name or grade."
        )
        self.count = count


class AlreadyLinkedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("You are already linked to this child.")


LINK_OUTCOME_ERRORS = (ChildNotFoundError, AmbiguousChildError, AlreadyLinkedError)
