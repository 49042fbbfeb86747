"""Routers package. HTTP endpoint definitions, all mounted under /api.

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to contractoros/services/.
"""
