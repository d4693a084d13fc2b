"""
Application package initializer.

This package contains the ASGI entrypoint of the server and its
submodules.  The code is split the same way as any of our FastAPI
services: ``core`` holds configuration, logging and the error
taxonomy, ``schemas`` the pydantic models for envelopes and catalog
records, ``services`` the registry, dispatcher and request context,
and ``api`` the HTTP routes.
"""

from .main import app  # noqa: F401
