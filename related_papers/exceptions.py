"""Custom exception hierarchy for the related-papers engine."""


class RelatedPapersError(Exception):
    """Base exception for related-papers engine errors."""


class ConfigError(RelatedPapersError):
    """Raised when configuration is invalid or incomplete."""


class RelatedPapersCancelled(RelatedPapersError):
    """Raised when a running request is cancelled through its token.

    Callers should treat this as a user abort, not as a failure to find
    related papers.
    """

    def __init__(self, message: str = "Related papers request cancelled") -> None:
        super().__init__(message)
