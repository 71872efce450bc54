"""
Configuration Management - Loads repository settings from the environment
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from recordsql.application.interfaces.exceptions import ConfigurationError
from recordsql.domain.filters import DEFAULT_LIMIT
from recordsql.infrastructure.database.dialects import PSYCOPG, Dialect, get_dialect

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

PATCH_UNKNOWN_MODES = ("reject", "ignore")


@dataclass
class RepositoryConfig:
    """Repository configuration settings"""

    dialect: Dialect = PSYCOPG
    statement_timeout: float | None = None
    default_limit: int = DEFAULT_LIMIT
    patch_unknown: str = "reject"

    def __post_init__(self) -> None:
        if self.statement_timeout is not None and self.statement_timeout <= 0:
            raise ConfigurationError(
                f"statement_timeout must be positive, got {self.statement_timeout}"
            )
        if self.default_limit < 1:
            raise ConfigurationError(f"default_limit must be at least 1, got {self.default_limit}")
        if self.patch_unknown not in PATCH_UNKNOWN_MODES:
            raise ConfigurationError(
                f"patch_unknown must be one of {', '.join(PATCH_UNKNOWN_MODES)}, "
                f"got {self.patch_unknown!r}"
            )

    @property
    def ignore_unknown_patch_keys(self) -> bool:
        return self.patch_unknown == "ignore"

    @classmethod
    def from_env(cls, prefix: str = "RECORDSQL_") -> "RepositoryConfig":
        """
        Load repository config from environment variables.

        Args:
            prefix: Variable name prefix

        Returns:
            RepositoryConfig instance

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        timeout = os.getenv(f"{prefix}STATEMENT_TIMEOUT")
        limit = os.getenv(f"{prefix}DEFAULT_LIMIT", str(DEFAULT_LIMIT))
        try:
            config = cls(
                dialect=get_dialect(os.getenv(f"{prefix}DIALECT", PSYCOPG.name)),
                statement_timeout=float(timeout) if timeout else None,
                default_limit=int(limit),
                patch_unknown=os.getenv(f"{prefix}PATCH_UNKNOWN", "reject").lower(),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid repository configuration: {e}", e) from e

        logger.debug(f"Loaded repository config: {config}")
        return config
