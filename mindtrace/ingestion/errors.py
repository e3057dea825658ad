"""Extraction errors raised when the model call itself fails."""


class ExtractionError(Exception):
    """Base for failures that leave an utterance without primitives."""


class LLMCallError(ExtractionError):
    """The model endpoint errored or could not be reached."""


class LLMTimeoutError(LLMCallError):
    """The model call did not return within the allotted time."""
