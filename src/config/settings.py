"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use DIRECTIVEPP_ prefix (e.g., DIRECTIVEPP_PRESERVE_LINE_NUMBERS=true).

Settings can also be loaded from a .env file in the project root.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use DIRECTIVEPP_ prefix.

    Examples:
        DIRECTIVEPP_ERROR_SOURCE_AHEAD=80
        DIRECTIVEPP_BASE_DIRECTORY=src/js
        DIRECTIVEPP_VERBOSITY=3
    """

    model_config = SettingsConfigDict(
        env_prefix="DIRECTIVEPP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Error reporting
    error_source_ahead: int = Field(
        default=50,
        ge=0,
        description="Number of source characters embedded in error messages",
    )

    # Processing defaults
    preserve_line_numbers: bool = Field(
        default=False,
        description="Replace removed text with blank lines instead of deleting it",
    )

    base_directory: str = Field(
        default=".",
        description="Directory that include paths are resolved against",
    )

    encoding: str = Field(
        default="utf-8",
        description="Encoding used to decode included files",
    )

    glob_separator_newline: bool = Field(
        default=True,
        description="Insert a newline between glob-included files that lack a trailing one",
    )

    # Logging
    verbosity: int = Field(
        default=1,
        ge=0,
        description="Logging verbosity (1=normal, 2=verbose, 3=debug incl. trace events)",
    )


# Singleton instance - import this in your code
appsettings = AppSettings()
