# expense_client/errors.py
"""Error taxonomy shared by the gateway, the store and the views."""


class ExpenseClientError(Exception):
    """Base class for every failure surfaced by the client."""

    default_message = "Something went wrong"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ExpenseClientError):
    default_message = "User not found"


class ValidationError(ExpenseClientError, ValueError):
    default_message = "Invalid input"

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = dict(errors or {})


class RemoteFailure(ExpenseClientError):
    default_message = "Request failed"

    def __init__(self, message=None, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class NetworkFailure(ExpenseClientError):
    default_message = "Could not reach the server"
