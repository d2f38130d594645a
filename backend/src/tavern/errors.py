"""Domain error taxonomy.

Expected failures (unknown ids, full sessions, bad credentials, ...) are raised
as TavernError subclasses. The HTTP layer converts them into JSON responses
using ``status_code``; socket handlers turn them into an ``error`` event for
the offending connection only.
"""

from typing import Any, Dict, Optional


class TavernError(Exception):
    """Base class for all expected application failures."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message()
        self.context = context
        super().__init__(self.message)

    def default_message(self) -> str:
        return "An unexpected error occurred"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


# =============================================================================
# NotFound
# =============================================================================

class NotFoundError(TavernError):
    status_code = 404
    code = "not_found"

    def default_message(self) -> str:
        return "Resource not found"


class SessionNotFoundError(NotFoundError):
    code = "session_not_found"

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}", session_id=session_id)


class PlayerNotFoundError(NotFoundError):
    code = "player_not_found"

    def __init__(self, player_id: str, session_id: Optional[str] = None):
        if session_id:
            message = f"Player {player_id} is not part of session {session_id}"
        else:
            message = f"Player not found: {player_id}"
        super().__init__(message, player_id=player_id, session_id=session_id)


class CharacterNotBoundError(NotFoundError):
    code = "character_not_bound"

    def __init__(self, player_id: str):
        super().__init__(f"No character bound to player {player_id}", player_id=player_id)


class CharacterNotFoundError(NotFoundError):
    code = "character_not_found"

    def __init__(self, character_id: str):
        super().__init__(f"Character not found: {character_id}", character_id=character_id)


# =============================================================================
# PreconditionFailed
# =============================================================================

class PreconditionFailedError(TavernError):
    status_code = 400
    code = "precondition_failed"

    def default_message(self) -> str:
        return "Operation not allowed in the current state"


class SessionNotJoinableError(PreconditionFailedError):
    code = "session_not_joinable"

    def __init__(self, session_id: str, status: str):
        super().__init__(
            f"Session is not accepting new players (status: {status})",
            session_id=session_id,
            status=status,
        )


class SessionFullError(PreconditionFailedError):
    code = "session_full"

    def __init__(self, session_id: str, max_participants: int):
        super().__init__(
            f"Session is full ({max_participants} participants)",
            session_id=session_id,
            max_participants=max_participants,
        )


class InvalidStatusTransitionError(PreconditionFailedError):
    code = "invalid_status_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move session from '{current}' to '{requested}'",
            current=current,
            requested=requested,
        )


class OwnerCannotLeaveError(PreconditionFailedError):
    code = "owner_cannot_leave"

    def __init__(self, session_id: str):
        super().__init__(
            "The session owner cannot leave; end or delete the session instead",
            session_id=session_id,
        )


class CharacterAlreadyBoundError(PreconditionFailedError):
    code = "character_already_bound"

    def __init__(self, player_id: str):
        super().__init__(f"Player {player_id} already has a character", player_id=player_id)


class UserAlreadyExistsError(PreconditionFailedError):
    status_code = 409
    code = "user_already_exists"

    def __init__(self, email: str):
        super().__init__("User already exists with this email", email=email)


# =============================================================================
# Forbidden / Unauthorized
# =============================================================================

class ForbiddenError(TavernError):
    status_code = 403
    code = "forbidden"

    def default_message(self) -> str:
        return "You do not have access to this resource"


class NotSessionOwnerError(ForbiddenError):
    code = "not_session_owner"

    def __init__(self, session_id: str, player_id: Optional[str]):
        super().__init__(
            "Only the session owner can perform this action",
            session_id=session_id,
            player_id=player_id,
        )


class ActingForOtherPlayerError(ForbiddenError):
    code = "acting_for_other_player"

    def default_message(self) -> str:
        return "Cannot act on behalf of another player"


class UnauthorizedError(TavernError):
    status_code = 401
    code = "unauthorized"

    def default_message(self) -> str:
        return "Authentication required"


class InvalidCredentialsError(UnauthorizedError):
    code = "invalid_credentials"

    def default_message(self) -> str:
        return "Invalid email or password"


class InvalidTokenError(UnauthorizedError):
    code = "invalid_token"

    def default_message(self) -> str:
        return "Invalid or expired token"


class PlayerTokenRequiredError(UnauthorizedError):
    code = "player_token_required"

    def default_message(self) -> str:
        return "A player token is required for this action"


class InvalidPlayerTokenError(UnauthorizedError):
    code = "invalid_player_token"

    def __init__(self, session_id: str):
        super().__init__(f"Invalid player token for session {session_id}", session_id=session_id)


# =============================================================================
# Validation / Internal
# =============================================================================

class ValidationFailedError(TavernError):
    status_code = 422
    code = "validation_error"

    def default_message(self) -> str:
        return "Request validation failed"


class PayloadValidationError(ValidationFailedError):
    code = "invalid_payload"


class InternalError(TavernError):
    """Wraps unexpected persistence failures at the service boundary."""

    status_code = 500
    code = "internal_error"
