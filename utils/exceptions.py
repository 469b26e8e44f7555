"""
Custom Exceptions
Exception taxonomy for the digest pipeline
"""


class DigestAgentError(Exception):
    """Base class for every error raised by the digest pipeline"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DigestAgentError):
    """Configuration error"""
    pass


class ProviderError(DigestAgentError):
    """A content provider could not complete a fetch"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class TopicNotFoundError(DigestAgentError):
    """Requested topic is not present in the topic store"""

    def __init__(self, topic: str):
        super().__init__(f"Topic {topic} not found", {"topic": topic})
        self.topic = topic


class StorageError(DigestAgentError):
    """Persistence error"""
    pass


class GenerationError(DigestAgentError):
    """Summary generation (LLM) error"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class NotificationError(DigestAgentError):
    """Notification sink error"""
    pass
