"""Tests for credential reading, adapters and the rotation coordinator."""
