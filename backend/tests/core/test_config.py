"""Settings — DATABASE_URL normalisation shared by the app and alembic."""

from app.config import Settings


def test_plain_postgres_url_gets_asyncpg_driver():
    settings = Settings(database_url="postgresql://u:p@h:5432/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@h:5432/db"


def test_explicit_driver_is_kept():
    url = "sqlite+aiosqlite:///test.db"
    assert Settings(database_url=url).database_url == url
