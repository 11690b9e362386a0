"""Project-wide custom exception types."""


class AlreadySubmittedError(RuntimeError):
    """Raised when a named respondent attempts to answer a survey more than once."""

    def __init__(self, message: str) -> None:  # noqa: D401 – simple constructor
        super().__init__(message)


class SurveyNotAcceptingResponsesError(RuntimeError):
    """Raised when a response is submitted to a survey that is not *Active*."""


class RecordDecodeError(ValueError):
    """Raised when a backend row lacks a field required to build a record."""


class InvalidRatingError(ValueError):
    """Raised when a rating is not an integer on the 1–4 scale."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Rating must be an integer between 1 and 4, got {value!r}")
        self.value = value
