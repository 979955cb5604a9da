"""Prompt construction package.

Architectural role:
    - `prompt_builder`: deterministic remote prompt assembly from a context
      bundle.
"""
