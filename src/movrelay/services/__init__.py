"""Workflow services."""
