"""
Service layer.

Each service encapsulates the business logic for one domain on top of
the record store.  Services raise ``NotFoundError`` when the target of
an operation does not exist and plain ``ValueError`` for any other bad
input, so the API layer can answer 404 and 400 respectively.
"""


class NotFoundError(ValueError):
    """The user, server or key an operation refers to does not exist."""
