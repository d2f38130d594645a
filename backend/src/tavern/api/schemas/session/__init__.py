"""Session schema exports."""

from tavern.api.schemas.session.session_settings_schema import SessionSettingsSchema
from tavern.api.schemas.session.create_session_request import CreateSessionRequest
from tavern.api.schemas.session.create_session_response import CreateSessionResponse
from tavern.api.schemas.session.player_response import PlayerResponse
from tavern.api.schemas.session.session_detail_response import SessionDetailResponse
from tavern.api.schemas.session.session_summary_response import SessionSummaryResponse
from tavern.api.schemas.session.join_session_request import JoinSessionRequest
from tavern.api.schemas.session.join_session_response import JoinSessionResponse
from tavern.api.schemas.session.update_status_request import UpdateStatusRequest
from tavern.api.schemas.session.bind_character_request import BindCharacterRequest
from tavern.api.schemas.session.character_binding_response import CharacterBindingResponse
from tavern.api.schemas.session.chat_message_response import ChatMessageResponse
from tavern.api.schemas.session.dice_roll_response import DiceRollResponse

__all__ = [
    "SessionSettingsSchema",
    "CreateSessionRequest",
    "CreateSessionResponse",
    "PlayerResponse",
    "SessionDetailResponse",
    "SessionSummaryResponse",
    "JoinSessionRequest",
    "JoinSessionResponse",
    "UpdateStatusRequest",
    "BindCharacterRequest",
    "CharacterBindingResponse",
    "ChatMessageResponse",
    "DiceRollResponse",
]
