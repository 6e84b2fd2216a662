from backoffice.repositories import addresses_repo, customers_repo

__all__ = [
    "addresses_repo",
    "customers_repo",
]
