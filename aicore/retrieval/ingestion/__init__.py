"""Document ingestion package.

Architectural role:
    - `document_parser`: turns text, JSON, and CSV uploads into plain text
      that is stored as a single experience.
"""
