"""Exceptions raised across layers."""


class GameError(Exception):
    """Base class for rejected game actions. Raised before any state is mutated."""


class GameStateError(GameError):
    """The session is not in a state that accepts the action (e.g. it is already finished)."""


class IllegalMoveError(GameError):
    """Movement rules of the piece do not allow this move."""


class IllegalPlacementError(GameError):
    """Placement from the reserve is not possible (occupied cell or piece not in reserve)."""


class OpeningPhaseError(GameError):
    """Pieces cannot be moved while the opening phase is still running."""


class InvalidRequestError(Exception):
    """Adapter request could not be validated."""


class InvalidActionError(Exception):
    """Payload received from (or meant for) the relay is not a valid action."""


class RelayError(Exception):
    """Transport-level failure while talking to the relay."""
