"""
Exception types and user-facing messages for PagePilot.

Nothing here is fatal: every error class is caught at a component
boundary and turned into a terminal outcome for the current turn.
"""


class OracleError(Exception):
    """The language model could not be reached or returned an unusable response."""


class TranscriptionError(Exception):
    """Recorded audio could not be turned into text."""


class ServiceError(Exception):
    """The classification service could not be reached or answered badly."""


# User-visible messages, one per error class
MSG_TRANSCRIPTION_FAILED = "Sorry, I couldn't hear that. Please try again."
MSG_DISPATCH_FAILED = "Sorry, I couldn't complete that action."
MSG_NO_INTENT = "Sorry, I couldn't determine what you want to do. Please try again with different wording."
MSG_BUSY = "Still working on your last request. Please wait a moment."
MSG_NO_FIELDS = "No form fields provided to fill."
MSG_NO_FIELDS_FILLED = "Failed to fill any form fields."


def invalid_email_message(value: str) -> str:
    return f"The email \"{value}\" doesn't appear to be valid. Please try again."


def unknown_field_message(field: str) -> str:
    return f"The form has no field called \"{field}\"."


def invalid_list_value_message(field: str, value: str) -> str:
    return f"Couldn't find any {field} matching \"{value}\"."


MSG_SERVICE_FAILED = "Sorry, there was an error processing your request."
