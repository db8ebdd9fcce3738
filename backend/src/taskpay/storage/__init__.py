"""Database engine, sessions and shared table definitions."""
