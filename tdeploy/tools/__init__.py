"""Wrappers around the external tools the pipeline drives."""
