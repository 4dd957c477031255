class TasteError(Exception):
    """Base class for failures surfaced by the taste pipeline."""


class EmptyInputError(TasteError):
    """The user has no top tracks, so there is nothing to aggregate."""


class UpstreamError(TasteError):
    """A call to the music service failed or returned a non-success status."""

    def __init__(self, operation, status=None, message=None):
        self.operation = operation
        self.status = status
        detail = message or "request failed"
        if status is not None:
            detail = f"{detail} (HTTP {status})"
        super().__init__(f"{operation}: {detail}")


class GenreTableError(TasteError):
    """The genre antonym reference data could not be loaded."""
