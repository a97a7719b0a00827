"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class StorageError(DomainException):
    """Obligation listing or read-state persistence failed"""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class CardNotFoundError(DomainException):
    """Credit card does not exist for this owner"""

    pass
