"""
Configuration Module

Everything the chat needs to know at startup, resolved once from the command
line and the environment and then passed explicitly to each component.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .exceptions import StartupConfigError


MODEL = "text-davinci-003"
TEMPERATURE = 0.5
MAX_TOKENS = 250
COMPLETION_BASE_URL = "https://api.openai.com/v1"

API_KEY_ENV = "OPENAI_API_KEY"
CONNECTION_STRING_ENV = "DATABASE_URL"

# Dialect names as they appear in the prompt
DIALECT_LABELS = {
    "postgresql": "Postgres",
    "sqlite": "SQLite",
}


@dataclass(frozen=True)
class AppConfig:
    """Immutable settings shared by the schema reader, client and chat"""
    api_key: str
    connection_string: str
    model: str = MODEL
    temperature: float = TEMPERATURE
    max_tokens: int = MAX_TOKENS
    base_url: str = COMPLETION_BASE_URL
    timeout: Optional[float] = None
    dialect: str = "Postgres"
    debug: bool = False

    @classmethod
    def from_args(cls, args, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """
        Build the configuration from parsed CLI arguments.

        Flags win over environment variables. A missing API key or
        connection string is fatal.

        Args:
            args: argparse namespace with api_key, connection_string, timeout, debug
            environ: Environment to fall back on (defaults to os.environ)

        Returns:
            AppConfig ready to hand to the components
        """
        environ = os.environ if environ is None else environ

        api_key = args.api_key or environ.get(API_KEY_ENV, "")
        connection_string = args.connection_string or environ.get(CONNECTION_STRING_ENV, "")

        if not api_key or not connection_string:
            raise StartupConfigError(
                f"Set auth key (-K or {API_KEY_ENV}) and connection string (-C or {CONNECTION_STRING_ENV})"
            )

        timeout = getattr(args, "timeout", None)
        if timeout is not None and timeout <= 0:
            raise StartupConfigError(f"Timeout must be positive, got {timeout}")

        connection_string = normalize_connection_string(connection_string)

        return cls(
            api_key=api_key,
            connection_string=connection_string,
            timeout=timeout,
            dialect=dialect_label(connection_string),
            debug=bool(getattr(args, "debug", False)),
        )


def normalize_connection_string(connection_string: str) -> str:
    """Accept libpq-style postgres:// URLs, which SQLAlchemy spells postgresql://"""
    if connection_string.startswith("postgres://"):
        return "postgresql://" + connection_string[len("postgres://"):]
    return connection_string


def dialect_label(connection_string: str) -> str:
    """Human-readable SQL dialect for a connection URL"""
    try:
        backend = make_url(connection_string).get_backend_name()
    except ArgumentError as e:
        raise StartupConfigError(f"Invalid connection string: {e}") from e
    return DIALECT_LABELS.get(backend, backend)
