"""Retrieval package.

Architectural role:
    - `context_builder`: keyword-overlap context selection for chat turns.
    - `ingestion`: converts uploaded documents into plain experience content.
"""
