"""Static evaluation and alpha-beta search for the computer player."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .game.board import CAPTURES_TO_WIN, BoardState, Move, MoveKind, Piece
from .game.rules import apply_move, revert_move


LOGGER = logging.getLogger(__name__)

Score = float

WIN_SCORE: Score = 1_000_000.0
# Wins are shifted by at most one point per ply, so they stay far above any heuristic score.
_MATE_THRESHOLD: Score = WIN_SCORE / 2


@dataclass
class EvaluationWeights:
    capture: float = 100.0
    tiger_mobility: float = 2.0
    threatened_goat: float = 10.0
    goat_mobility: float = 1.0


@dataclass
class SearchConfig:
    depth: int = 4
    weights: EvaluationWeights = field(default_factory=EvaluationWeights)


def evaluate(state: BoardState, perspective: Piece, weights: Optional[EvaluationWeights] = None) -> Score:
    """Score ``state`` for ``perspective``; the two sides always see opposite values.

    Finished games score ``+WIN_SCORE`` for the winner and ``-WIN_SCORE`` for
    the loser. Otherwise captured goats dominate, followed by tiger mobility
    and the number of goats a tiger could take right now, offset by goat
    mobility.
    """

    weights = weights or EvaluationWeights()
    tiger_moves = state.moves_for(Piece.TIGER)
    goat_moves = state.moves_for(Piece.GOAT)

    tigers_won: Optional[bool] = None
    if state.goats_captured >= CAPTURES_TO_WIN:
        tigers_won = True
    elif state.side_to_move is Piece.TIGER and not tiger_moves:
        tigers_won = False
    elif state.side_to_move is Piece.GOAT and not goat_moves:
        tigers_won = True

    if tigers_won is not None:
        score = WIN_SCORE if tigers_won else -WIN_SCORE
    else:
        threatened = {move.captured for move in tiger_moves if move.kind is MoveKind.CAPTURE}
        score = (
            weights.capture * state.goats_captured
            + weights.tiger_mobility * len(tiger_moves)
            + weights.threatened_goat * len(threatened)
            - weights.goat_mobility * len(goat_moves)
        )

    return score if perspective is Piece.TIGER else -score


class CancellationToken:
    """Flag polled by the search; safe to set from a signal handler or another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _SearchCancelled(Exception):
    pass


@dataclass
class SearchResult:
    move: Move
    score: Optional[Score]
    depth: int
    nodes: int
    cancelled: bool = False


class MinimaxAgent:
    def __init__(self, player: Piece, depth: int = 4, weights: Optional[EvaluationWeights] = None) -> None:
        if depth < 1:
            raise ValueError("search depth must be at least 1")
        self.player = player
        self.depth = depth
        self.weights = weights or EvaluationWeights()
        self._token = CancellationToken()
        self._nodes = 0

    @classmethod
    def from_config(cls, player: Piece, config: SearchConfig) -> "MinimaxAgent":
        return cls(player, depth=config.depth, weights=config.weights)

    def choose_move(self, state: BoardState, token: Optional[CancellationToken] = None) -> Optional[Move]:
        result = self.search(state, token)
        return None if result is None else result.move

    def search(self, state: BoardState, token: Optional[CancellationToken] = None) -> Optional[SearchResult]:
        """Iteratively deepen up to ``self.depth`` plies.

        Only fully searched depths count: when ``token`` fires mid-iteration
        the result of the last finished depth is returned. ``state`` is
        mutated during the search and restored before returning.
        """

        if state.side_to_move is not self.player:
            raise ValueError(f"{self.player.value} agent asked to move for {state.side_to_move.value}")

        moves = state.legal_moves()
        if not moves or state.goats_captured >= CAPTURES_TO_WIN:
            return None

        self._token = token or CancellationToken()
        self._nodes = 0
        best: Optional[SearchResult] = None
        cancelled = False

        for depth in range(1, self.depth + 1):
            try:
                move, score = self._search_root(state, moves, depth)
            except _SearchCancelled:
                LOGGER.info(
                    "Search interrupted at depth %d after %d nodes; keeping depth %d result",
                    depth,
                    self._nodes,
                    0 if best is None else best.depth,
                )
                cancelled = True
                break

            best = SearchResult(move=move, score=score, depth=depth, nodes=self._nodes)
            LOGGER.debug("Depth %d: best %s score %.1f (%d nodes)", depth, move, score, self._nodes)
            if score >= _MATE_THRESHOLD:
                break

        if not cancelled:
            return best

        if best is None:
            # Not even one ply finished; any legal move beats no move.
            return SearchResult(move=moves[0], score=None, depth=0, nodes=self._nodes, cancelled=True)
        best.cancelled = True
        best.nodes = self._nodes
        return best

    def _check_cancelled(self) -> None:
        if self._token.cancelled:
            raise _SearchCancelled()

    def _search_root(self, state: BoardState, moves: List[Move], depth: int) -> Tuple[Move, Score]:
        self._check_cancelled()
        self._nodes += 1

        best_move = moves[0]
        best_score = -math.inf
        alpha = -math.inf

        for index, move in enumerate(moves):
            delta = apply_move(state, move)
            try:
                score = self._alphabeta(state, depth - 1, alpha, math.inf, 1)
            finally:
                revert_move(state, delta)

            # Strict comparison keeps the earliest move on ties.
            if index == 0 or score > best_score:
                best_score = score
                best_move = move
            alpha = max(alpha, best_score)

        return best_move, best_score

    def _alphabeta(self, state: BoardState, depth: int, alpha: Score, beta: Score, ply: int) -> Score:
        # Depth-limited minimax core
        self._check_cancelled()
        self._nodes += 1

        moves = state.legal_moves()
        if depth <= 0 or not moves or state.goats_captured >= CAPTURES_TO_WIN:
            return self._evaluate(state, ply)

        maximizing = state.side_to_move is self.player

        if maximizing:
            value = -math.inf
            for move in moves:
                delta = apply_move(state, move)
                try:
                    value = max(value, self._alphabeta(state, depth - 1, alpha, beta, ply + 1))
                finally:
                    revert_move(state, delta)
                alpha = max(alpha, value)
                if alpha >= beta:
                    break
            return value

        value = math.inf
        for move in moves:
            delta = apply_move(state, move)
            try:
                value = min(value, self._alphabeta(state, depth - 1, alpha, beta, ply + 1))
            finally:
                revert_move(state, delta)
            beta = min(beta, value)
            if alpha >= beta:
                break
        return value

    def _evaluate(self, state: BoardState, ply: int) -> Score:
        score = evaluate(state, self.player, self.weights)
        # Prefer quick wins and slow losses.
        if score >= WIN_SCORE:
            return score - ply
        if score <= -WIN_SCORE:
            return score + ply
        return score

    @property
    def description(self) -> str:
        return f"Minimax(depth={self.depth})"


def choose_move(
    state: BoardState,
    depth_limit: int,
    token: Optional[CancellationToken] = None,
    weights: Optional[EvaluationWeights] = None,
) -> Optional[Move]:
    """Pick a move for the side to move, or ``None`` if it has none."""

    agent = MinimaxAgent(state.side_to_move, depth=depth_limit, weights=weights)
    return agent.choose_move(state, token)


__all__ = [
    "CancellationToken",
    "EvaluationWeights",
    "MinimaxAgent",
    "SearchConfig",
    "SearchResult",
    "WIN_SCORE",
    "choose_move",
    "evaluate",
]
