"""Shared utilities (file IO, logging)."""
