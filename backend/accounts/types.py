"""Request payloads and reference types for the player record service.

Field aliases keep older clients working: ``username``/``password`` are
accepted wherever ``handle``/``credential`` are.
"""

from dataclasses import dataclass
from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from shared.dal.models import COUNTER_MAX

# Negative values are left to the service (score is floored, the rest rejected).
Counter = Annotated[StrictInt, Field(le=COUNTER_MAX)]


@dataclass(frozen=True)
class PlayerRef:
    """Identifies a record by id or handle. The id wins when both are given."""

    player_id: str | None = None
    handle: str | None = None


class _Request(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class RegisterRequest(_Request):
    handle: StrictStr = Field(default="", validation_alias=AliasChoices("handle", "username"))
    credential: StrictStr = Field(default="", validation_alias=AliasChoices("credential", "password"))
    email: StrictStr | None = None


class LoginRequest(_Request):
    handle: StrictStr = Field(default="", validation_alias=AliasChoices("handle", "username"))
    credential: StrictStr = Field(default="", validation_alias=AliasChoices("credential", "password"))


class PlayerAuthRequest(_Request):
    """Body or query of fetch/delete/outcome calls: a reference plus the current credential."""

    player_id: StrictStr | None = Field(default=None, validation_alias=AliasChoices("id", "player_id"))
    handle: StrictStr | None = Field(default=None, validation_alias=AliasChoices("handle", "username"))
    credential: StrictStr = Field(default="", validation_alias=AliasChoices("credential", "password"))

    @property
    def ref(self) -> PlayerRef:
        return PlayerRef(player_id=self.player_id or None, handle=self.handle or None)


class UpdateRequest(_Request):
    """PUT /player body: reference, current credential, and the fields to change."""

    player_id: StrictStr | None = Field(default=None, validation_alias=AliasChoices("id", "player_id"))
    handle: StrictStr | None = Field(default=None, validation_alias=AliasChoices("handle", "username"))
    current_credential: StrictStr = Field(
        default="",
        validation_alias=AliasChoices("currentCredential", "currentPassword", "current_credential"),
    )

    @property
    def ref(self) -> PlayerRef:
        return PlayerRef(player_id=self.player_id or None, handle=self.handle or None)


class PlayerChanges(_Request):
    """Partial update. Fields left out of the payload are not touched.

    ``email`` may be sent as null to clear it; use ``model_fields_set`` to tell
    an explicit null from an absent field.
    """

    level: Counter | None = None
    experience: Counter | None = None
    score: Counter | None = None
    wins: Counter | None = None
    losses: Counter | None = None
    email: StrictStr | None = None
    new_credential: StrictStr | None = Field(
        default=None,
        validation_alias=AliasChoices("credential", "password", "new_credential"),
    )


class OutcomeRequest(PlayerAuthRequest):
    won: StrictBool
