"""Clients for the language models behind the JamBot assistant."""
