"""Database models"""
from homestock.models.user import AuthOrigin, User, normalize_email

__all__ = ["AuthOrigin", "User", "normalize_email"]
