"""
HTTP layer: FastAPI routes and dependency injection.
"""
