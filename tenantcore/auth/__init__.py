"""
Authentication service for tenantcore.

This package provides authentication and authorization:
- User registration and login
- JWT access/refresh tokens bound to revocable sessions
- Password hashing, reset and change
- Role and organization guards
"""
