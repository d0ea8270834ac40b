"""
tenantcore: multi-tenant CRUD and authentication backend.
"""
__version__ = "0.1.0"
