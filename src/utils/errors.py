"""Error taxonomy for study sessions.

Each error carries the HTTP status and the short message shown to the learner.
Provider failures inside the video stages never escape as exceptions; they
degrade to empty or unfiltered results instead.
"""


class AthenaError(Exception):
    """Base class for errors surfaced to the caller of a session."""

    status_code = 500
    user_message = "Failed to process request. Please try again."

    def __init__(self, message: str = "", user_message: str = ""):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class InvalidInputError(AthenaError):
    """Raised when the learner submitted neither usable text nor an image."""

    status_code = 400
    user_message = "Text is required"


class MissingCredentialError(AthenaError):
    """Raised when the Gemini API key is not configured."""

    status_code = 500
    user_message = "Server is missing its Gemini API key."


class InvalidCredentialError(AthenaError):
    """Raised when Gemini rejects the configured API key."""

    status_code = 401
    user_message = "Invalid API key. Check server .env file."


class UpstreamParseError(AthenaError):
    """Raised when the model reply is not a well-formed JSON object."""

    status_code = 500
    user_message = "Failed to parse AI response. Please try again."


class ProviderUnavailableError(AthenaError):
    """Raised inside the video stages when YouTube cannot be reached."""

    status_code = 503
    user_message = "Video search is unavailable."
