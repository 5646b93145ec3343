"""
Pydantic schema definitions for API payloads.

Schemas are separated from the store's own record type so that the API
representation (camelCase, no id number) is decoupled from the data the
service holds internally.
"""
