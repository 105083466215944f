"""Command-line interface for playing Baghchal against a friend or the computer."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .ai import CancellationToken, EvaluationWeights, MinimaxAgent, SearchConfig
from .game.board import BoardInvariantError, BoardState, Move, MoveKind, Piece, opponent
from .game.rules import InvalidMove, Winner, apply_move, new_game, undo, winner


LOG = logging.getLogger("baghchal.cli")

RED = "\033[1;31m"
YELLOW = "\033[1;33m"
RESET = "\033[0m"

CONTROL_WORDS = {
    "h": "help",
    "help": "help",
    "?": "help",
    "u": "undo",
    "undo": "undo",
    "m": "moves",
    "moves": "moves",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}

INSTRUCTIONS = """
=== BAGHCHAL ===
A traditional board game from Nepal

Board positions are numbered 0-24, left to right, top to bottom:
  0  1  2  3  4
  5  6  7  8  9
 10 11 12 13 14
 15 16 17 18 19
 20 21 22 23 24

T = Tiger, G = Goat, · = Empty
Goats: enter a position to place a goat, then 'from to' to move one.
Tigers: enter 'from to'; a capture is entered with its landing point.
Commands: help, undo, moves (list legal moves), quit
================
"""


@dataclass(frozen=True)
class Command:
    name: str
    squares: Tuple[int, ...] = ()


def parse_command(text: str) -> Command:
    """Turn raw user input into a :class:`Command`; raises ``ValueError`` on nonsense."""

    value = text.strip().lower()
    if value in CONTROL_WORDS:
        return Command(CONTROL_WORDS[value])

    parts = value.replace("-", " ").replace(",", " ").split()
    if not 1 <= len(parts) <= 2:
        raise ValueError("enter one position to place or two to move")
    try:
        squares = tuple(int(part) for part in parts)
    except ValueError:
        raise ValueError(f"not a position: {text.strip()!r}") from None
    for square in squares:
        if not 0 <= square <= 24:
            raise ValueError(f"position {square} is off the board")
    return Command("move", squares)


def resolve_move(state: BoardState, squares: Tuple[int, ...]) -> Move:
    """Match the typed squares against the legal moves.

    Unmatched input still yields a :class:`Move` so that applying it reports
    the rejection.
    """

    if len(squares) == 1:
        return Move.place(squares[0])

    origin, target = squares
    for move in state.legal_moves():
        if move.kind is not MoveKind.PLACE and move.origin == origin and move.target == target:
            return move
    return Move.step(origin, target)


def _symbol(piece: Optional[Piece], color: bool) -> str:
    if piece is Piece.TIGER:
        return f"{RED}T{RESET}" if color else "T"
    if piece is Piece.GOAT:
        return f"{YELLOW}G{RESET}" if color else "G"
    return "·"


def render_board(state: BoardState, color: bool = True) -> str:
    rows = []
    for row in range(5):
        cells = [_symbol(state.slots[row * 5 + col], color) for col in range(5)]
        rows.append("   " + " ".join(cells))
    rows.append("")
    rows.append(
        f"Goats in hand: {state.goats_in_hand}  Captured: {state.goats_captured}  "
        f"To move: {state.side_to_move.value.capitalize()}"
    )
    return "\n".join(rows)


def _prompt(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def _announce(result: Winner) -> None:
    if result is Winner.TIGERS:
        print("Tigers win!")
    else:
        print("Goats win! The tigers are trapped.")


class Match:
    """Runs one game between any mix of human and computer players."""

    def __init__(
        self,
        agents: Dict[Piece, Optional[MinimaxAgent]],
        color: bool = True,
        max_turns: Optional[int] = None,
    ) -> None:
        self.state = new_game()
        self.agents = agents
        self.color = color
        self.max_turns = max_turns
        self.token = CancellationToken()
        has_ai = any(agent is not None for agent in agents.values())
        has_human = any(agent is None for agent in agents.values())
        # Against the computer an undo also takes back its reply.
        self.undo_step = 2 if has_ai and has_human else 1

    def show(self) -> None:
        print()
        print(render_board(self.state, self.color))
        print()

    def play(self) -> Optional[Winner]:
        self.show()
        turns = 0
        while True:
            result = winner(self.state)
            if result is not None:
                _announce(result)
                return result

            if self.max_turns is not None and turns >= self.max_turns:
                print(f"No result after {turns} moves; calling it a draw.")
                return None

            side = self.state.side_to_move
            agent = self.agents.get(side)
            if agent is None:
                if not self._human_turn(side):
                    print("Game abandoned.")
                    return None
            else:
                self._ai_turn(agent)

            self.state.check_invariants()
            turns += 1
            self.show()

    def _human_turn(self, side: Piece) -> bool:
        label = side.value.capitalize()
        while True:
            raw = _prompt(f"{label} to move (or 'help'): ")
            if raw is None:
                return False

            try:
                command = parse_command(raw)
            except ValueError as exc:
                print(f"{exc}. Try again.")
                continue

            if command.name == "quit":
                return False
            if command.name == "help":
                print(INSTRUCTIONS)
                continue
            if command.name == "moves":
                print("Legal moves: " + ", ".join(str(move) for move in self.state.legal_moves()))
                continue
            if command.name == "undo":
                if self.undo_step > len(self.state.history):
                    print("Nothing to undo.")
                    continue
                undone = undo(self.state, self.undo_step)
                print("Took back " + ", ".join(str(move) for move in undone) + ".")
                return True

            move = resolve_move(self.state, command.squares)
            try:
                apply_move(self.state, move)
            except InvalidMove as exc:
                print(f"Invalid move ({exc.reason}): {exc.move}. Try again.")
                continue

            if move.kind is MoveKind.CAPTURE:
                print(f"Tiger captured the goat on {move.captured}!")
            return True

    def _ai_turn(self, agent: MinimaxAgent) -> None:
        print(f"{agent.player.value.capitalize()} ({agent.description}) is thinking... Ctrl+C to hurry it up.")

        def _interrupt(signum, frame) -> None:
            self.token.cancel()

        previous = signal.signal(signal.SIGINT, _interrupt)
        try:
            result = agent.search(self.state, self.token)
        finally:
            signal.signal(signal.SIGINT, previous)
            self.token.reset()

        if result is None:
            raise RuntimeError(f"{agent.player.value} has no legal move to play")
        if result.cancelled:
            print(f"Search stopped early; using depth {result.depth} result.")
        apply_move(self.state, result.move)
        print(f"{agent.player.value.capitalize()} plays {result.move}.")
        if result.move.kind is MoveKind.CAPTURE:
            print(f"Tiger captured the goat on {result.move.captured}!")


def _prompt_mode() -> Optional[str]:
    while True:
        raw = _prompt("Select mode: 1) Human vs Human  2) Human vs AI  3) AI vs AI : ")
        if raw is None:
            return None
        choice = raw.strip()
        if choice in {"1", "2", "3"}:
            return {"1": "hvh", "2": "hva", "3": "ava"}[choice]
        print("Invalid selection. Please choose 1, 2 or 3.")


def _prompt_side() -> Optional[Piece]:
    while True:
        raw = _prompt("Play as Goat (G) or Tiger (T)? Goats move first [G/T]: ")
        if raw is None:
            return None
        choice = raw.strip().lower()
        if choice in {"g", "goat"}:
            return Piece.GOAT
        if choice in {"t", "tiger"}:
            return Piece.TIGER
        print("Please type 'G' or 'T'.")


def search_config(args: argparse.Namespace, side: Piece) -> SearchConfig:
    """Map the depth and weight flags onto the search settings for ``side``."""

    depth = (args.goat_depth or args.depth) if side is Piece.GOAT else args.depth
    weights = EvaluationWeights(
        capture=args.capture_weight,
        tiger_mobility=args.mobility_weight,
        threatened_goat=args.threat_weight,
        goat_mobility=args.goat_mobility_weight,
    )
    return SearchConfig(depth=depth, weights=weights)


def _build_agents(args: argparse.Namespace) -> Optional[Dict[Piece, Optional[MinimaxAgent]]]:
    if args.mode == "hvh":
        return {Piece.GOAT: None, Piece.TIGER: None}

    if args.mode == "ava":
        return {side: MinimaxAgent.from_config(side, search_config(args, side)) for side in Piece}

    human = Piece(args.human) if args.human else _prompt_side()
    if human is None:
        return None
    ai_side = opponent(human)
    return {human: None, ai_side: MinimaxAgent.from_config(ai_side, search_config(args, ai_side))}


def build_parser() -> argparse.ArgumentParser:
    defaults = EvaluationWeights()
    parser = argparse.ArgumentParser(description="Play Baghchal in the terminal")
    parser.add_argument("--mode", choices=["hvh", "hva", "ava"], help="human/AI pairing")
    parser.add_argument("--human", choices=["goat", "tiger"], help="your side in human-vs-AI games")
    parser.add_argument("--depth", type=int, default=4, help="tiger search depth (and goat depth unless overridden)")
    parser.add_argument("--goat-depth", type=int, default=None)
    parser.add_argument("--capture-weight", type=float, default=defaults.capture, help="score per captured goat")
    parser.add_argument("--mobility-weight", type=float, default=defaults.tiger_mobility, help="score per tiger move")
    parser.add_argument("--threat-weight", type=float, default=defaults.threatened_goat, help="score per goat a tiger can jump")
    parser.add_argument("--goat-mobility-weight", type=float, default=defaults.goat_mobility, help="score per goat move")
    parser.add_argument("--max-turns", type=int, default=200, help="draw limit for AI-vs-AI games")
    parser.add_argument("--no-color", action="store_true")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    if args.depth < 1 or (args.goat_depth is not None and args.goat_depth < 1):
        parser.error("search depth must be at least 1")

    print(INSTRUCTIONS)
    try:
        if args.mode is None:
            args.mode = _prompt_mode()
            if args.mode is None:
                return 0

        agents = _build_agents(args)
        if agents is None:
            return 0

        match = Match(
            agents,
            color=not args.no_color and sys.stdout.isatty(),
            max_turns=args.max_turns if args.mode == "ava" else None,
        )
        match.play()
    except KeyboardInterrupt:
        LOG.info("Interrupted, leaving the game")
        print("\nGoodbye!")
        return 130
    except BoardInvariantError:
        LOG.exception("Board state corrupted; aborting")
        return 1

    print("Thanks for playing!")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    sys.exit(main())
