"""Exceptions raised by the mention resolution engine."""


class MentionLinkError(Exception):
    """Base class for engine errors."""

    retryable = False


class ResolutionFailedError(MentionLinkError):
    """Scoring a single mention failed unexpectedly."""

    retryable = True

    def __init__(self, index: int, normalized_name: str, cause: Exception):
        self.index = index
        self.normalized_name = normalized_name
        self.cause = cause
        super().__init__(
            f"Resolution failed for mention {index} ({normalized_name!r}): {cause}"
        )


class PersistenceFailedError(MentionLinkError):
    """Writing a mention audit record failed."""

    retryable = True


class InvalidMentionLinkError(MentionLinkError):
    """A mention would point at the source contact or another owner's contact."""


class MentionNotFoundError(MentionLinkError):
    """No mention with this id exists for the owner."""

    def __init__(self, mention_id: str):
        self.mention_id = mention_id
        super().__init__(f"Mention not found: {mention_id}")


class InvalidTransitionError(MentionLinkError):
    """The mention's review status does not allow the requested action."""
