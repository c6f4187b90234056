"""
Domain exceptions that are not plain HTTP errors.

Both are answered with a JSON 500 by handlers registered in main.py.
"""


class UnknownReferenceError(Exception):
    """An import record names a city or venue slug that does not exist."""

    def __init__(self, kind: str, slug: str):
        self.kind = kind
        self.slug = slug
        super().__init__(f'{kind} with slug "{slug}" not found')


class PaymentGatewayError(Exception):
    """The payment gateway could not be reached or refused the request."""
