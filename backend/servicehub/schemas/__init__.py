"""Pydantic request/response schemas and the uniform result envelope."""
