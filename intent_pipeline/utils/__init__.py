"""Utility helpers for the intent classification pipeline."""
