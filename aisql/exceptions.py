"""
Error hierarchy

Startup errors (StartupConfigError, SchemaLoadError) abort the process.
Everything else aborts only the current question and the chat carries on.
"""

from typing import Optional


class AisqlError(Exception):
    """Base class for all errors raised by aisql"""


class StartupConfigError(AisqlError):
    """Required configuration (API key, connection string) is missing or invalid"""


class SchemaLoadError(AisqlError):
    """The schema snapshot could not be read from the database"""


class InputReadError(AisqlError):
    """Reading a line from the input stream failed"""


class CompletionRequestError(AisqlError):
    """Building, sending or parsing a completion request failed"""


class CompletionHTTPError(CompletionRequestError):
    """The completion service answered with a status other than 200"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP status {status_code}: {body}")


class CompletionParseError(CompletionRequestError):
    """The completion body was not JSON of the expected shape"""


class EmptyResponseError(CompletionRequestError):
    """The completion service returned no choices"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "no response returned")


class QueryExecutionError(AisqlError):
    """The confirmed SQL failed to run"""


class ResultFormattingError(AisqlError):
    """Rows came back but could not be rendered as a table"""
