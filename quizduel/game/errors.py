class GameError(Exception):
    pass


class UnauthenticatedError(GameError):
    pass


class UnauthorizedError(GameError):
    pass


class NotFoundError(GameError):
    pass


class InvalidStateError(GameError):
    pass


class ExpiredError(GameError):
    pass


class AlreadyJoinedError(GameError):
    pass


class FullError(GameError):
    pass


class DuplicateAnswerError(GameError):
    pass


class InvalidSelectionError(GameError):
    pass


class ContentUnavailableError(GameError):
    pass


class DataIntegrityError(GameError):
    pass


class QuotaExceededError(GameError):
    def __init__(self, *, kind: str, limit: int, used: int) -> None:
        super().__init__(f"{kind} quota exceeded: used={used} limit={limit}")
        self.kind = kind
        self.limit = limit
        self.used = used
