"""Tenant-scoped user management."""
