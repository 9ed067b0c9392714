"""Utility helpers for saferm."""
