"""Prompt construction for visibility checks.

Deterministic templates: the same category and brand list always render the
same prompt, so runs stay comparable even though model output is not.
"""
