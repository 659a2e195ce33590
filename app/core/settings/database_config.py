"""Database connection configuration."""

from pydantic import BaseModel
from sqlalchemy.engine import make_url


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    url: str
    echo: bool = False

    @property
    def sqlite_path(self) -> str | None:
        """Filesystem path of a file-backed SQLite database, if any."""
        parsed = make_url(self.url)
        if parsed.get_backend_name() != "sqlite":
            return None
        if parsed.database in (None, "", ":memory:"):
            return None
        return parsed.database
