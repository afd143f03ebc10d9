"""Stores and managers that hold the pipeline's workspace-scoped state."""
