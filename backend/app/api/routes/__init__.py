"""
API route modules.
"""
from app.api.routes import users, subscriptions, comments

__all__ = ["users", "subscriptions", "comments"]
