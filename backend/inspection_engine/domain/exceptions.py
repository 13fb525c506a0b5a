"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested in-process entity (e.g. a wizard) does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class BackingStoreError(Exception):
    """Raised when the backing store rejects or fails a request.

    Base class for the save-pipeline error taxonomy.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"[backing-store] {status_code}: {message}")


class NetworkError(BackingStoreError):
    """The backing store could not be reached (connect failure, timeout, reset)."""

    def __init__(self, message: str):
        super().__init__(status_code=0, message=message)


class ValidationError(BackingStoreError):
    """The backing store rejected the payload.

    ``field_errors`` maps a field name to its messages. Errors that are
    not tied to a field are collected under ``"non_field_errors"``.
    """

    def __init__(
        self,
        field_errors: dict[str, list[str]],
        message: str = "Validation error",
        status_code: int = 400,
    ):
        self.field_errors = field_errors
        super().__init__(status_code=status_code, message=message)


class NotFoundError(BackingStoreError):
    """The backing store has no record for the given identity."""

    def __init__(self, entity_type: str, entity_id: int | str | None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            status_code=404,
            message=f"{entity_type} with id '{entity_id}' not found",
        )


class AssociationWarning(Exception):
    """A Program/Broadcaster link could not be created.

    Never raised past the entity resolution service — it is collected
    as an advisory because the link is enrichment only.
    """

    def __init__(
        self,
        program_id: int | str,
        broadcaster_id: int | str,
        cause: Exception | None = None,
    ):
        self.program_id = program_id
        self.broadcaster_id = broadcaster_id
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(
            f"Could not link broadcaster '{broadcaster_id}' "
            f"to program '{program_id}'{detail}"
        )


class WizardStateError(Exception):
    """Raised when an operation is not allowed in the wizard's current stage."""


class ReadOnlyFieldError(ValueError):
    """Raised when a derived field is edited directly."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Field '{field}' is derived and cannot be edited")
