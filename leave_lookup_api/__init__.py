"""
Top‑level package for the Leave Lookup API.

This file makes ``leave_lookup_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``leave_lookup_api.app.main``.  The bundled front‑end entry point lives
in ``public/`` next to this file.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
