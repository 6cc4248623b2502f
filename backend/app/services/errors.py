class GameValidationError(ValueError):
    """A candidate game broke one of the authoring rules."""

    def __init__(self, reason: str, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)

    def as_detail(self) -> dict:
        return {"reason": self.reason, "message": self.message}


class InvalidArgument(ValueError):
    pass


class NotFoundError(LookupError):
    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class TransactionFailure(RuntimeError):
    pass


class CredentialError(PermissionError):
    """Supplied deletion password or token did not match."""


class ForbiddenError(PermissionError):
    pass
