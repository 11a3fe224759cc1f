"""
Exception types for the interview session engine.
"""


class InterviewError(Exception):
    """Base class for all interview engine errors."""


class ConfigurationError(InterviewError):
    """Unknown domain or invalid runtime configuration."""


class LevelError(ConfigurationError):
    """Level is not offered within an otherwise known domain."""

    def __init__(self, domain: str, level: str):
        super().__init__(f'Level "{level}" not found for domain "{domain}"')
        self.domain = domain
        self.level = level


class AnalysisUnavailable(InterviewError):
    """The response analyzer failed or returned output that could not be validated."""


class PoolExhausted(InterviewError):
    """A question pool had nothing to serve even after its asked-set was reset."""

    def __init__(self, domain: str, level: str):
        super().__init__(f"No questions available for {domain}/{level}")
        self.domain = domain
        self.level = level


class SessionClosedError(InterviewError):
    """A mutation was attempted on a finished session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is finished and can no longer be changed")
        self.session_id = session_id


class FinalizationFailed(InterviewError):
    """Whole-transcript analysis failed; the session can be finalized again."""

    def __init__(self, session_id: str, cause: Exception):
        super().__init__(f"Could not finalize session {session_id}: {cause}")
        self.session_id = session_id
        self.cause = cause
