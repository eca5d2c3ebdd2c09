# app/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration and connection management
- errors: ApiError, the error envelope and the centralized error responder
- responses: The success response envelope
- security: Password hashing and JWT access/refresh tokens
"""
