"""Nodes of the prediction workflow."""
