"""Storyteller HTTP API."""
