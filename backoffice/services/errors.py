from __future__ import annotations


class CustomerDomainError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CustomerDomainError):
    status_code = 404


class ConflictError(CustomerDomainError):
    status_code = 409


class InvalidStateError(CustomerDomainError):
    status_code = 400
