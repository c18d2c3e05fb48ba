from __future__ import annotations


class StorefrontError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


class RouteConfigurationError(StorefrontError):
    """A required route parameter is missing; the route table is wrong, not the request."""

    def __init__(self, *, message: str) -> None:
        super().__init__(message=message, status_code=500)


class NotFoundError(StorefrontError):
    def __init__(self, *, message: str) -> None:
        super().__init__(message=message, status_code=404)


class PageContentMissingError(StorefrontError):
    def __init__(self, *, message: str) -> None:
        super().__init__(message=message, status_code=500)


class RedirectRequired(Exception):
    """Terminates resolution with a redirect. Not an error."""

    def __init__(self, *, location: str, status_code: int = 302) -> None:
        super().__init__(location)
        self.location = location
        self.status_code = status_code
