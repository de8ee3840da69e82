"""Exception types raised by the exam package."""


class ExamError(Exception):
    """Base class for every error raised by pkexam."""


class SessionError(ExamError):
    """An operation was attempted that the session state does not allow."""


class ProviderError(ExamError):
    """The content provider could not produce a usable reply."""


class MissingCredentialsError(ProviderError):
    """No API key is configured for the content provider."""


class MalformedResponseError(ProviderError):
    """The provider replied, but the reply did not match the question schema."""
