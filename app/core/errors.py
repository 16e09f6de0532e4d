class BotError(Exception):
    """Base bot error."""


class UpstreamError(BotError):
    """Raised when an upstream API is unreachable or returns a bad response."""


class ValidationError(BotError):
    """Raised for invalid user input."""


class RenderError(BotError):
    """Raised when an optional chart or screenshot cannot be produced."""


class DeliveryError(BotError):
    """Raised when a Telegram send/edit/delete call fails."""
