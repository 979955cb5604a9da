"""Adapters exposing the core over HTTP and an interactive terminal."""
