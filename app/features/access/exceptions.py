"""
Errors raised by the access control core.
"""


class AccessControlError(Exception):
    """Base class for access control errors."""


class ConfigurationError(AccessControlError):
    """
    Startup configuration is unusable: role definitions are malformed
    (unknown parent, cyclic inheritance, duplicate role, invalid shape) or
    the token secret is missing. The application must not start.
    """


class UnknownRoleError(AccessControlError):
    """A query named a role the registry was never told about."""

    def __init__(self, role: str):
        super().__init__(f"Unknown role: {role!r}")
        self.role = role
