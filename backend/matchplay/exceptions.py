from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code

    def to_problem(self, instance: str | None = None) -> ProblemDetail:
        return ProblemDetail(
            type=self.type,
            title=self.title,
            detail=self.detail,
            status=self.status_code,
            instance=instance,
            code=self.code,
        )


class NotFoundError(DomainException):
    def __init__(self, title: str, *, code: str, detail: str) -> None:
        super().__init__(status_code=404, title=title, code=code, detail=detail)


class TournamentNotFound(NotFoundError):
    def __init__(self, tournament_id: str) -> None:
        super().__init__(
            "Tournament not found",
            detail=f"tournament '{tournament_id}' not found",
            code="tournament_not_found",
        )
        self.tournament_id = tournament_id


class RoundNotFound(NotFoundError):
    def __init__(self, round_number: int) -> None:
        super().__init__(
            "Round not found",
            detail=f"round {round_number} not found",
            code="round_not_found",
        )
        self.round_number = round_number


class MatchNotFound(NotFoundError):
    def __init__(self, match_id: str, round_number: int) -> None:
        super().__init__(
            "Match not found",
            detail=f"match '{match_id}' not found in round {round_number}",
            code="match_not_found",
        )
        self.match_id = match_id
        self.round_number = round_number


class PlayerNotFound(NotFoundError):
    def __init__(self, player_id: str) -> None:
        super().__init__(
            "Player not found",
            detail=f"player '{player_id}' not found",
            code="player_not_found",
        )
        self.player_id = player_id


class LocalUserNotFound(NotFoundError):
    def __init__(self, email: str) -> None:
        super().__init__(
            "User not found",
            detail=f"user '{email}' not found",
            code="user_not_found",
        )
        self.email = email


class VerificationTokenNotFound(NotFoundError):
    def __init__(self) -> None:
        super().__init__(
            "Invalid verification token",
            detail="invalid verification token",
            code="invalid_verification_token",
        )


class ConflictError(DomainException):
    def __init__(self, title: str, *, code: str, detail: str) -> None:
        super().__init__(status_code=409, title=title, code=code, detail=detail)


class TournamentAlreadyExists(ConflictError):
    def __init__(self, tournament_id: str) -> None:
        super().__init__(
            "Tournament exists",
            detail=f"tournament '{tournament_id}' already exists",
            code="tournament_exists",
        )
        self.tournament_id = tournament_id


class LocalUserAlreadyExists(ConflictError):
    def __init__(self, email: str) -> None:
        super().__init__(
            "User exists",
            detail=f"a user with email '{email}' already exists",
            code="user_exists",
        )
        self.email = email


class InvalidInput(DomainException):
    """Raised when a round, hole or result value is outside its allowed set."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=400,
            title="Invalid input",
            detail=detail,
            code="invalid_input",
        )


class StorageFailure(DomainException):
    """Raised when a backend cannot read, write or decode a stored record.

    ``operation`` and ``identifier`` name what was being attempted; the
    underlying error is chained as ``__cause__``.
    """

    def __init__(self, operation: str, identifier: str, reason: str) -> None:
        super().__init__(
            status_code=500,
            title="Storage failure",
            detail=f"{operation} {identifier}: {reason}",
            code="storage_failure",
        )
        self.operation = operation
        self.identifier = identifier
