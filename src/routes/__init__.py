"""
API Routes Package
==================
Support code for the FastAPI app defined in api.py.

Modules:
  helpers  - JSON coercion and response payload builders
"""
