"""Outbound HTTP access used by the API-learning flow."""
