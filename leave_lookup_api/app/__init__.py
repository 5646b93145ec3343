"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules: ``core`` (configuration, logging, errors, middleware and
bot verification), ``schemas`` (request and response models),
``services`` (the leave store) and ``api`` (routers and endpoints).
"""

from .main import app  # noqa: F401
