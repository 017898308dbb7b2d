"""Clients for services outside this API."""
