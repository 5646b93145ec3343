"""
API package containing the routers.

``router.py`` aggregates the endpoint modules under ``endpoints`` and
``deps.py`` holds the dependencies that hand shared application state
to them.
"""
