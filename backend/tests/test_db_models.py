"""Table declarations used to bootstrap a fresh Supabase project."""

from sqlalchemy import create_engine, inspect

from agriassist.db import async_url
from agriassist.models.db_models import Base


def test_tables_create_on_sqlite():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    inspector = inspect(engine)

    assert set(inspector.get_table_names()) == {"chat_messages", "user_preferences", "weather_alerts"}
    alert_columns = {c["name"] for c in inspector.get_columns("weather_alerts")}
    assert alert_columns == {
        "id", "location", "alert_type", "title", "message",
        "severity", "active", "created_at", "expires_at",
    }
    prefs_columns = {c["name"] for c in inspector.get_columns("user_preferences")}
    assert "primary_crops" in prefs_columns and "farm_size" in prefs_columns


def test_async_url():
    assert async_url("postgres://u:p@db.x.supabase.co:5432/postgres") == (
        "postgresql+asyncpg://u:p@db.x.supabase.co:5432/postgres"
    )
    assert async_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert async_url("postgresql+asyncpg://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
