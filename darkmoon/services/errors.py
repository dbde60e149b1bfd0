"""Errors raised by the dice room services.

Every error is reported to the requesting connection only, tagged with
the section it concerns. None of them touch room state.
"""

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base class for rejected requests."""

    default_message = 'Request rejected.'

    def __init__(self, message: Optional[str] = None, section: Any = None):
        self.message = message or self.default_message
        self.section = section
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message, 'section': self.section}


class PreconditionError(GameError):
    """The request is well formed but not allowed in the current state."""


class ValidationError(GameError):
    """The request payload is malformed or out of range."""


class NotJoined(PreconditionError):
    default_message = 'Join a room first.'


class RollInProgress(PreconditionError):
    default_message = 'You already have a roll in progress for this section.'


class RollNotFound(PreconditionError):
    default_message = 'Roll not found.'


class NotOwner(PreconditionError):
    default_message = 'Only the roller can reveal.'


class AlreadyCompleted(PreconditionError):
    default_message = 'This roll is already completed.'


class InvalidJoin(ValidationError):
    default_message = 'Room code and player name are required.'


class UnknownSection(ValidationError):
    default_message = 'Unknown roll section.'


class InvalidDiceCounts(ValidationError):
    default_message = 'Dice counts must be 0 or higher.'


class InvalidActionType(ValidationError):
    default_message = 'Select a valid action.'


class InvalidDiceTotal(ValidationError):
    default_message = 'Select at least one die.'


class InvalidCorpCount(ValidationError):
    default_message = 'Corp rolls must be 2 or 3 yellow dice.'


class InvalidSelection(ValidationError):
    default_message = 'Select valid dice to reveal.'
