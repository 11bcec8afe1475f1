"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Storage backend selection and service wiring
- db: Tortoise ORM configuration and connection management
- errors: Error kinds raised by the services
- security: Password hashing and session token encoding
"""
