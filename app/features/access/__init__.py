"""
Access control feature module.

Implements Role-Based Access Control (RBAC) with role inheritance and
Own/Any scoped actions, plus the request-gating dependencies built on it.
"""
