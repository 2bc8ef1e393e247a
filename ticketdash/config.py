"""
Application configuration using pydantic-settings.
Loads configuration from environment variables and .env file.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Supports loading from .env file for local development. Jira
    credentials default to empty so the dashboard can start before
    they are configured; sync refuses to run until they are set.
    """

    # Jira API Configuration
    JIRA_URL: str = Field(
        default="",
        description="Jira site URL (e.g., 'https://company.atlassian.net')"
    )
    JIRA_EMAIL: str = Field(
        default="",
        description="Jira account email for API authentication"
    )
    JIRA_API_TOKEN: str = Field(
        default="",
        description="Jira API token for authentication"
    )
    JIRA_JQL_SCOPE: str = Field(
        default="assignee = currentUser()",
        description="JQL clause that scopes every sync query"
    )
    JIRA_PAGE_SIZE: int = Field(
        default=100,
        description="Page size hint sent as maxResults"
    )
    JIRA_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Transport timeout for a single Jira request"
    )

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./ticketdash.db",
        description="Async SQLAlchemy URL (sqlite+aiosqlite:// or postgresql+asyncpg://)"
    )

    # Business calendar used for resolution-time statistics
    BUSINESS_HOURS_START: int = Field(
        default=9,
        description="Opening hour of the working day (inclusive)"
    )
    BUSINESS_HOURS_END: int = Field(
        default=17,
        description="Closing hour of the working day (exclusive)"
    )

    # Environment
    ENVIRONMENT: str = Field(
        default="development",
        description="Application environment: development, staging, production"
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def jira_configured(self) -> bool:
        """True when every credential needed for a sync is present."""
        return bool(self.JIRA_URL and self.JIRA_EMAIL and self.JIRA_API_TOKEN)

    def __repr__(self) -> str:
        """
        Custom repr that masks sensitive values.

        Prevents accidental exposure of credentials in logs.
        """
        sensitive_fields = {
            "JIRA_API_TOKEN",
            "DATABASE_URL",
        }

        fields = []
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if field_name in sensitive_fields and value:
                if isinstance(value, str) and len(value) > 8:
                    masked = value[:4] + "***" + value[-4:]
                else:
                    masked = "***"
                fields.append(f"{field_name}={masked!r}")
            else:
                fields.append(f"{field_name}={value!r}")

        return f"Settings({', '.join(fields)})"


# Create singleton settings instance
settings = Settings()
