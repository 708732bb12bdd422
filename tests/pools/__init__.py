"""Tests for SQLAlchemy pool back ends."""
