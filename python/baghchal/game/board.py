from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..adjacency import NODE_COUNT, adjacent, jump_target, neighbors


TIGER_COUNT = 4
GOAT_COUNT = 20
CAPTURES_TO_WIN = 5
TIGER_START: Tuple[int, ...] = (0, 4, 20, 24)


class Piece(Enum):
    TIGER = "tiger"
    GOAT = "goat"


# Flip between sides
def opponent(piece: Piece) -> Piece:
    return Piece.GOAT if piece is Piece.TIGER else Piece.TIGER


class MoveKind(Enum):
    PLACE = 0
    STEP = 1
    CAPTURE = 2


class Phase(Enum):
    GOAT_PLACING = "goat_placing"
    GOAT_MOVING = "goat_moving"
    TIGER_MOVING = "tiger_moving"


class BoardInvariantError(RuntimeError):
    """The board reached a state no sequence of legal moves can produce."""


@dataclass(frozen=True)
class Move:
    kind: MoveKind
    target: int
    origin: Optional[int] = None
    captured: Optional[int] = None

    @classmethod
    def place(cls, target: int) -> "Move":
        return cls(MoveKind.PLACE, target)

    @classmethod
    def step(cls, origin: int, target: int) -> "Move":
        return cls(MoveKind.STEP, target, origin=origin)

    @classmethod
    def capture(cls, origin: int, captured: int, target: int) -> "Move":
        return cls(MoveKind.CAPTURE, target, origin=origin, captured=captured)

    def __str__(self) -> str:
        if self.kind is MoveKind.PLACE:
            return str(self.target)
        if self.kind is MoveKind.STEP:
            return f"{self.origin}-{self.target}"
        return f"{self.origin}x{self.target}"


@dataclass(frozen=True)
class MoveDelta:
    """Everything needed to undo one applied move."""

    move: Move
    previous_occupants: Tuple[Tuple[int, Optional[Piece]], ...]
    goats_placed: int
    goats_captured: int
    side_to_move: Piece


@dataclass
class BoardState:
    slots: List[Optional[Piece]] = field(default_factory=lambda: [None] * NODE_COUNT)
    goats_placed: int = 0
    goats_captured: int = 0
    side_to_move: Piece = Piece.GOAT
    history: List[MoveDelta] = field(default_factory=list)

    @classmethod
    def new(cls) -> "BoardState":
        state = cls()
        state.reset()
        return state

    def reset(self) -> None:
        # Rebuild the initial layout
        self.slots = [None] * NODE_COUNT
        for node in TIGER_START:
            self.slots[node] = Piece.TIGER
        self.goats_placed = 0
        self.goats_captured = 0
        self.side_to_move = Piece.GOAT
        self.history = []

    def occupant(self, node: int) -> Optional[Piece]:
        if not 0 <= node < NODE_COUNT:
            raise ValueError(f"Unknown node index: {node}")
        return self.slots[node]

    def positions_of(self, piece: Piece) -> List[int]:
        return [node for node, slot in enumerate(self.slots) if slot is piece]

    @property
    def goats_in_hand(self) -> int:
        return GOAT_COUNT - self.goats_placed

    @property
    def goats_on_board(self) -> int:
        return sum(1 for slot in self.slots if slot is Piece.GOAT)

    @property
    def phase(self) -> Phase:
        if self.side_to_move is Piece.TIGER:
            return Phase.TIGER_MOVING
        if self.goats_placed < GOAT_COUNT:
            return Phase.GOAT_PLACING
        return Phase.GOAT_MOVING

    @property
    def moves(self) -> List[Move]:
        return [delta.move for delta in self.history]

    def check_invariants(self) -> None:
        tigers = sum(1 for slot in self.slots if slot is Piece.TIGER)
        if tigers != TIGER_COUNT:
            raise BoardInvariantError(f"expected {TIGER_COUNT} tigers, found {tigers}")
        if not 0 <= self.goats_placed <= GOAT_COUNT:
            raise BoardInvariantError(f"goats_placed out of range: {self.goats_placed}")
        if not 0 <= self.goats_captured <= self.goats_placed:
            raise BoardInvariantError(f"goats_captured out of range: {self.goats_captured}")
        accounted = self.goats_on_board + self.goats_in_hand + self.goats_captured
        if accounted != GOAT_COUNT:
            raise BoardInvariantError(f"goat count mismatch: {accounted} != {GOAT_COUNT}")

    def simple_moves(self, origin: int) -> List[Move]:
        # Non-capturing steps from a node
        slots = self.slots
        return [
            Move.step(origin, edge.neighbor)
            for edge in neighbors(origin)
            if slots[edge.neighbor] is None
        ]

    def capture_moves(self, origin: int) -> List[Move]:
        # Tiger jumps over an adjacent goat onto an empty landing
        slots = self.slots
        moves: List[Move] = []
        for edge in neighbors(origin):
            if edge.landing is None:
                continue
            if slots[edge.neighbor] is Piece.GOAT and slots[edge.landing] is None:
                moves.append(Move.capture(origin, edge.neighbor, edge.landing))
        return moves

    def moves_for(self, piece: Piece) -> List[Move]:
        """Moves ``piece`` could make here, whichever side is to move.

        Ordered by ascending position, then placement, step, capture.
        """

        slots = self.slots
        if piece is Piece.GOAT:
            if self.goats_placed < GOAT_COUNT:
                return [Move.place(node) for node, slot in enumerate(slots) if slot is None]
            moves: List[Move] = []
            for node, slot in enumerate(slots):
                if slot is Piece.GOAT:
                    moves.extend(self.simple_moves(node))
            return moves

        moves = []
        for node, slot in enumerate(slots):
            if slot is Piece.TIGER:
                moves.extend(self.simple_moves(node))
                moves.extend(self.capture_moves(node))
        return moves

    def legal_moves(self) -> List[Move]:
        return self.moves_for(self.side_to_move)


def legal_moves(state: BoardState) -> List[Move]:
    """Every legal move for the side to move; empty when that side is stuck."""

    return state.legal_moves()


def _on_board(node: Optional[int]) -> bool:
    return node is not None and 0 <= node < NODE_COUNT


def is_legal(state: BoardState, move: Move) -> bool:
    """Same answer as ``move in legal_moves(state)`` without generating the list."""

    if not _on_board(move.target) or state.slots[move.target] is not None:
        return False

    side = state.side_to_move
    if move.kind is MoveKind.PLACE:
        return (
            side is Piece.GOAT
            and state.goats_placed < GOAT_COUNT
            and move.origin is None
            and move.captured is None
        )

    if not _on_board(move.origin) or state.slots[move.origin] is not side:
        return False

    if move.kind is MoveKind.STEP:
        if side is Piece.GOAT and state.goats_placed < GOAT_COUNT:
            return False
        return move.captured is None and move.target in adjacent(move.origin)

    if side is not Piece.TIGER or not _on_board(move.captured):
        return False
    return (
        state.slots[move.captured] is Piece.GOAT
        and jump_target(move.origin, move.captured) == move.target
    )
