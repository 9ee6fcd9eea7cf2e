"""Database connection and snapshot storage."""
