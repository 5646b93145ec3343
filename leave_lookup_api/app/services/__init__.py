"""
Service layer abstraction.

Each service encapsulates business logic for a domain.  The leave
service holds the read‑only record store and the duration calculation.
"""
