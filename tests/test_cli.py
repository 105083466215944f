import signal

import pytest

from baghchal.ai import CancellationToken, EvaluationWeights, MinimaxAgent
from baghchal.cli import (
    Command,
    Match,
    _build_agents,
    build_parser,
    main,
    parse_command,
    render_board,
    resolve_move,
    search_config,
)
from baghchal.game.board import BoardState, Move, Piece
from baghchal.game.rules import new_game


@pytest.mark.parametrize(
    "text, expected",
    [
        ("12", Command("move", (12,))),
        (" 0 1 ", Command("move", (0, 1))),
        ("0-2", Command("move", (0, 2))),
        ("3,8", Command("move", (3, 8))),
        ("U", Command("undo")),
        ("help", Command("help")),
        ("?", Command("help")),
        ("moves", Command("moves")),
        ("quit", Command("quit")),
        ("q", Command("quit")),
    ],
)
def test_parse_command(text, expected):
    assert parse_command(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "25", "30 1", "1 2 3", "1 x"])
def test_parse_command_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_command(text)


def test_resolve_placement_and_steps():
    state = new_game()
    assert resolve_move(state, (12,)) == Move.place(12)
    assert resolve_move(state, (0, 1)) == Move.step(0, 1)


def test_resolve_capture_from_landing_point():
    state = BoardState.new()
    state.slots[1] = Piece.GOAT
    state.goats_placed = 1
    state.side_to_move = Piece.TIGER
    assert resolve_move(state, (0, 2)) == Move.capture(0, 1, 2)


def test_render_board_plain():
    text = render_board(new_game(), color=False)
    lines = text.splitlines()
    assert lines[0] == "   T · · · T"
    assert lines[2] == "   · · · · ·"
    assert lines[4] == "   T · · · T"
    assert "Goats in hand: 20" in text
    assert "To move: Goat" in text


def test_render_board_color():
    text = render_board(new_game(), color=True)
    assert "\033[1;31mT\033[0m" in text


def test_ai_vs_ai_stops_at_turn_limit(capsys):
    assert main(["--mode", "ava", "--depth", "1", "--max-turns", "6", "--no-color"]) == 0
    out = capsys.readouterr().out
    assert "calling it a draw" in out
    assert "Thanks for playing!" in out


def test_human_vs_human_with_undo(monkeypatch, capsys):
    answers = iter(["12", "0 7", "0 1", "undo", "q"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    assert main(["--mode", "hvh", "--no-color"]) == 0

    out = capsys.readouterr().out
    assert "Invalid move (illegal_move): 0-7" in out
    assert "Took back 0-1." in out
    assert "Game abandoned." in out


def test_human_vs_ai_plays_reply(monkeypatch, capsys):
    answers = iter(["12", "quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    assert main(["--mode", "hva", "--human", "goat", "--depth", "1", "--no-color"]) == 0

    out = capsys.readouterr().out
    assert "Tiger plays" in out


def test_end_of_input_quits(monkeypatch):
    def _eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", _eof)
    assert main(["--no-color"]) == 0


def test_rejects_bad_depth():
    with pytest.raises(SystemExit):
        main(["--depth", "0"])


class InterruptOnFirstPoll(CancellationToken):
    """Delivers SIGINT the first time the search checks for cancellation."""

    def __init__(self):
        super().__init__()
        self.interrupted = False

    @property
    def cancelled(self):
        if not self.interrupted:
            self.interrupted = True
            signal.raise_signal(signal.SIGINT)
        return super().cancelled


def test_weight_flags_reach_the_agents():
    args = build_parser().parse_args(
        ["--mode", "ava", "--depth", "3", "--goat-depth", "2", "--capture-weight", "50", "--threat-weight", "4"]
    )
    agents = _build_agents(args)

    tiger, goat = agents[Piece.TIGER], agents[Piece.GOAT]
    assert tiger.depth == 3
    assert goat.depth == 2
    for agent in (tiger, goat):
        assert agent.weights == EvaluationWeights(
            capture=50.0, tiger_mobility=2.0, threatened_goat=4.0, goat_mobility=1.0
        )


def test_goat_depth_defaults_to_depth():
    args = build_parser().parse_args(["--depth", "5", "--goat-mobility-weight", "0.5"])
    config = search_config(args, Piece.GOAT)
    assert config.depth == 5
    assert config.weights.goat_mobility == 0.5


def test_human_vs_ai_uses_configured_agent():
    args = build_parser().parse_args(["--mode", "hva", "--human", "tiger", "--goat-depth", "2"])
    agents = _build_agents(args)
    assert agents[Piece.TIGER] is None
    assert agents[Piece.GOAT].depth == 2


def test_interrupt_during_search_plays_best_move_so_far(capsys):
    match = Match({Piece.GOAT: MinimaxAgent(Piece.GOAT, depth=3), Piece.TIGER: None}, color=False)
    match.token = InterruptOnFirstPoll()
    handler_before = signal.getsignal(signal.SIGINT)
    first_choice = match.state.legal_moves()[0]

    match._ai_turn(match.agents[Piece.GOAT])

    assert match.state.moves == [first_choice]
    assert signal.getsignal(signal.SIGINT) is handler_before
    assert not match.token.cancelled
    out = capsys.readouterr().out
    assert "Search stopped early; using depth 0 result." in out
    assert f"Goat plays {first_choice}." in out


def test_ai_turn_without_moves_is_an_error():
    match = Match({Piece.GOAT: None, Piece.TIGER: MinimaxAgent(Piece.TIGER, depth=1)}, color=False)
    match.state.reset()
    for node in (0, 1, 2, 3):
        match.state.slots[node] = Piece.TIGER
    match.state.slots[20] = match.state.slots[24] = None
    for node in range(4, 15):
        match.state.slots[node] = Piece.GOAT
    match.state.goats_placed = 11
    match.state.side_to_move = Piece.TIGER

    with pytest.raises(RuntimeError):
        match._ai_turn(match.agents[Piece.TIGER])


def test_corrupted_board_aborts(monkeypatch):
    def corrupted_game():
        state = BoardState.new()
        # A goat nobody placed.
        state.slots[12] = Piece.GOAT
        return state

    answers = iter(["13"])
    monkeypatch.setattr("baghchal.cli.new_game", corrupted_game)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    assert main(["--mode", "hvh", "--no-color"]) == 1
