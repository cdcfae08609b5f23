"""Storyteller command line interface."""
