"""User types (roles): listing, lookup by code and SUPER_ADMIN management."""
