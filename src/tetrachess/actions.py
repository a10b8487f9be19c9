"""
Actions: the only way a Session/Clock pair advances, whether applied locally or echoed back by the relay.

The set is closed: every action carries a `type` tag and is parsed into exactly one of the models below.
Wire names match what the peers exchange through the relay (e.g. `{"type": "move", "from": 0, "to": 4}`).
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from src.core.exceptions import InvalidActionError
from src.core.shared_types import PieceKind
from src.tetrachess.settings import GameSettings
from src.tetrachess.square import CELL_COUNT

CellIndex = Annotated[int, Field(ge=0, lt=CELL_COUNT)]


class _ActionBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class PlaceAction(_ActionBase):
    type: Literal["place"] = "place"
    index: CellIndex
    kind: PieceKind = Field(alias="piece")


class MoveAction(_ActionBase):
    type: Literal["move"] = "move"
    from_index: CellIndex = Field(alias="from")
    to_index: CellIndex = Field(alias="to")


class ClockStartAction(_ActionBase):
    type: Literal["clock-start"] = "clock-start"


class RestartAction(_ActionBase):
    type: Literal["restart"] = "restart"


class SyncSettingsAction(_ActionBase):
    type: Literal["sync-settings"] = "sync-settings"
    settings: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: GameSettings) -> "SyncSettingsAction":
        return cls(settings=settings.to_wire())


class StartGameAction(_ActionBase):
    type: Literal["start-game"] = "start-game"


class SwapSidesAction(_ActionBase):
    type: Literal["swap-sides"] = "swap-sides"


Action = Annotated[
    Union[
        PlaceAction,
        MoveAction,
        ClockStartAction,
        RestartAction,
        SyncSettingsAction,
        StartGameAction,
        SwapSidesAction,
    ],
    Field(discriminator="type"),
]

_ACTION_ADAPTER: TypeAdapter[Action] = TypeAdapter(Action)


def parse_action(payload: Any) -> Action:
    """Wire payload (dict) -> Action. Unknown tags or broken fields raise InvalidActionError."""
    try:
        return _ACTION_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise InvalidActionError(f"Not a valid action: {payload!r}") from exc


def dump_action(action: Action) -> dict[str, Any]:
    """Action -> wire payload (dict)"""
    return action.model_dump(mode="json", by_alias=True)
