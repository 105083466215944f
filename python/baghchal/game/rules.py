"""Turn sequencing, move application and win detection built on :mod:`baghchal.game.board`."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from .board import (
    CAPTURES_TO_WIN,
    BoardState,
    Move,
    MoveDelta,
    MoveKind,
    Piece,
    is_legal,
    opponent,
)


LOGGER = logging.getLogger(__name__)


class Winner(Enum):
    TIGERS = "tigers"
    GOATS = "goats"


class InvalidMove(ValueError):
    """Raised when a proposed move is not legal in the current position."""

    def __init__(self, move: Move, reason: str = "illegal_move") -> None:
        super().__init__(f"{reason}: {move}")
        self.move = move
        self.reason = reason


def new_game() -> BoardState:
    return BoardState.new()


def winner(state: BoardState) -> Optional[Winner]:
    """Return the winning side, or ``None`` while the game is still running."""

    if state.goats_captured >= CAPTURES_TO_WIN:
        return Winner.TIGERS
    if state.legal_moves():
        return None
    # The side to move is stuck and loses.
    return Winner.GOATS if state.side_to_move is Piece.TIGER else Winner.TIGERS


def is_game_over(state: BoardState) -> bool:
    return winner(state) is not None


def apply_move(state: BoardState, move: Move) -> MoveDelta:
    """Validate ``move`` and play it in place, returning the delta that undoes it.

    Validation happens before anything is touched, so a rejected move leaves
    ``state`` exactly as it was.
    """

    if state.goats_captured >= CAPTURES_TO_WIN:
        raise InvalidMove(move, "game_over")
    if not is_legal(state, move):
        raise InvalidMove(move)

    slots = state.slots
    touched = [move.target]
    if move.origin is not None:
        touched.append(move.origin)
    if move.captured is not None:
        touched.append(move.captured)

    delta = MoveDelta(
        move=move,
        previous_occupants=tuple((node, slots[node]) for node in touched),
        goats_placed=state.goats_placed,
        goats_captured=state.goats_captured,
        side_to_move=state.side_to_move,
    )

    if move.kind is MoveKind.PLACE:
        slots[move.target] = Piece.GOAT
        state.goats_placed += 1
    else:
        slots[move.target] = slots[move.origin]
        slots[move.origin] = None
        if move.kind is MoveKind.CAPTURE:
            slots[move.captured] = None
            state.goats_captured += 1

    state.side_to_move = opponent(state.side_to_move)
    state.history.append(delta)
    return delta


def revert_move(state: BoardState, delta: MoveDelta) -> None:
    """Exact inverse of :func:`apply_move`; only the latest move can be reverted."""

    if not state.history or state.history[-1] is not delta:
        raise ValueError(f"{delta.move} is not the most recent move")

    state.history.pop()
    for node, piece in delta.previous_occupants:
        state.slots[node] = piece
    state.goats_placed = delta.goats_placed
    state.goats_captured = delta.goats_captured
    state.side_to_move = delta.side_to_move


def undo(state: BoardState, count: int = 1) -> List[Move]:
    """Take back the last ``count`` moves, most recent first."""

    if count < 1:
        raise ValueError("undo count must be positive")
    if count > len(state.history):
        raise ValueError(f"cannot undo {count} moves, only {len(state.history)} played")

    undone: List[Move] = []
    for _ in range(count):
        delta = state.history[-1]
        revert_move(state, delta)
        undone.append(delta.move)

    LOGGER.debug("Undid %d move(s): %s", count, ", ".join(str(move) for move in undone))
    return undone
