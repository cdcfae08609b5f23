"""Storyboard prompt templates."""

NARRATION_SYSTEM_PROMPT = """You are an AI storyteller for 6-year-olds.
You explain big ideas with small stories: warm, concrete, and easy to picture.
Use short sentences and everyday words. Never frighten the reader."""

NARRATION_PROMPT = """
Explain the concept "{{ concept }}".
Create a storyboard with {{ scene_count }} scenes.
For each scene, provide the scene number and a short narration ({{ sentences }} simple sentences).
Return exactly {{ scene_count }} scenes, in story order.
"""

ILLUSTRATION_PROMPT = """
{{ character }}
Scene: {{ narration }}
Style: {{ style }}
"""
