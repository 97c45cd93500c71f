# app/clients/__init__.py

"""Outbound clients: identity provider, scraper backend, LLM providers and the in-memory cache."""
