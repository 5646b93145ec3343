"""
Endpoint subpackage.

Each module in this package defines an APIRouter: ``leaves`` for the
JSON lookup and listing endpoints, ``client_config`` for the values the
front end needs at start‑up and ``frontend`` for the catch‑all
route serving the single page front end.  The routers are aggregated in
``api/router.py``.
"""
