# app/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: User account, credentials and profile
- Subscription: Subscriber -> channel edge between two users
"""
from .user import User
from .subscription import Subscription
