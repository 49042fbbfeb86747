"""Pydantic request/response schemas. Every API model extends CamelModel."""
