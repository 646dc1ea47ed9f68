"""
Unit Tests for the Streaming Response Accumulator

Tests focus on:
    - Line reassembly across arbitrary chunk boundaries
    - "Last wins" replacement of evaluation and principal variation
    - Terminal states: TERMINATED, ABORTED (no legal move, unparsable move)
    - Robustness: invalid UTF-8, CRLF line endings, output after bestmove
"""

import pytest

from chess_play.uci.accumulator import AccumulatorState, EngineDecision, ResponseAccumulator
from chess_play.uci.errors import EngineSessionError, ErrorKind
from chess_play.uci.notation import decode_move
from chess_play.uci.parser import Bound, EvaluationReport


TRANSCRIPT = (
    b"id name Stockfish 16\n"
    b"id author the Stockfish developers\n"
    b"uciok\n"
    b"readyok\n"
    b"info string NNUE evaluation using nn-5af11540bbfe.nnue enabled\n"
    b"info depth 1 seldepth 1 multipv 1 score cp 18 nodes 20 nps 20000 pv e2e4\n"
    b"info depth 2 seldepth 2 multipv 1 score cp 46 nodes 66 pv d2d4 d7d5\n"
    b"info depth 3 seldepth 3 multipv 1 score cp 51 lowerbound nodes 120 pv d2d4\n"
    b"info depth 3 currmove d2d4 currmovenumber 1\n"
    b"info depth 4 seldepth 4 multipv 1 score cp 30 nodes 400 pv e2e4 c7c5 g1f3 b8c6\n"
    b"bestmove e2e4 ponder c7c5\n"
)


def feed_chunks(data: bytes, size: int) -> ResponseAccumulator:
    """Feed data to a fresh accumulator in chunks of the given size."""
    accumulator = ResponseAccumulator()
    for start in range(0, len(data), size):
        accumulator.feed(data[start:start + size])
    return accumulator


def moves(*tokens):
    return tuple(decode_move(token) for token in tokens)


class TestScenarios:
    """End-to-end transcripts."""

    def test_simple_decision(self):
        """Test a scored info line followed by bestmove."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info depth 1 score cp 35 pv e2e4 e7e5\n")
        accumulator.feed(b"bestmove e2e4\n")

        assert accumulator.state is AccumulatorState.TERMINATED
        assert accumulator.decision() == EngineDecision(
            move=decode_move("e2e4"),
            evaluation=EvaluationReport(35, Bound.EXACT),
            pv=moves("e2e4", "e7e5"),
            depth=1,
        )

    def test_no_legal_move(self):
        """Test 'bestmove (none)' with no prior info lines."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"bestmove (none)\n")

        assert accumulator.state is AccumulatorState.ABORTED
        assert accumulator.error_kind is ErrorKind.NO_LEGAL_MOVE
        with pytest.raises(EngineSessionError) as exc_info:
            accumulator.decision()
        assert exc_info.value.kind is ErrorKind.NO_LEGAL_MOVE

    def test_unparsable_best_move(self):
        """Test that an undecodable bestmove aborts the response."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info depth 1 score cp 10 pv e2e4\nbestmove zz99\n")

        assert accumulator.is_done()
        assert accumulator.error_kind is ErrorKind.UNPARSABLE_BEST_MOVE
        assert accumulator.best_move is None
        with pytest.raises(EngineSessionError) as exc_info:
            accumulator.decision()
        assert exc_info.value.kind is ErrorKind.UNPARSABLE_BEST_MOVE

    def test_bare_bestmove_unparsable(self):
        """Test that 'bestmove' without a token is unparsable."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"bestmove\n")

        assert accumulator.error_kind is ErrorKind.UNPARSABLE_BEST_MOVE

    def test_upperbound(self):
        """Test an upperbound score carried into the decision."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info score cp -120 upperbound pv d2d4\n")
        accumulator.feed(b"bestmove d2d4\n")

        decision = accumulator.decision()
        assert decision.evaluation.bound is Bound.UPPER
        assert decision.evaluation.centipawns == -120

    def test_no_info_lines(self):
        """Test a decision without evaluation or pv."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"readyok\nbestmove g1f3\n")

        decision = accumulator.decision()
        assert decision.move == decode_move("g1f3")
        assert decision.evaluation is None
        assert decision.pv == ()

    def test_full_transcript(self):
        """Test a realistic engine transcript."""
        accumulator = ResponseAccumulator()
        accumulator.feed(TRANSCRIPT)

        decision = accumulator.decision()
        assert decision.move == decode_move("e2e4")
        assert decision.ponder == decode_move("c7c5")
        assert decision.evaluation == EvaluationReport(30)
        assert decision.pv == moves("e2e4", "c7c5", "g1f3", "b8c6")
        assert decision.depth == 4


class TestChunking:
    """Tests for line reassembly."""

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 64, 1024])
    def test_chunk_size_does_not_matter(self, size):
        """Test that any chunking yields the same decision as one chunk."""
        whole = ResponseAccumulator()
        whole.feed(TRANSCRIPT)

        assert feed_chunks(TRANSCRIPT, size).decision() == whole.decision()

    def test_partial_line_stays_buffered(self):
        """Test that a line without newline is not processed yet."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"bestmove e2e4")

        assert not accumulator.is_done()

        accumulator.feed(b"\n")

        assert accumulator.decision().move == decode_move("e2e4")

    def test_split_inside_token(self):
        """Test a chunk boundary in the middle of a move token."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info score cp 7 pv e2")
        accumulator.feed(b"e4 e7e5\nbestm")
        accumulator.feed(b"ove e2e4\n")

        decision = accumulator.decision()
        assert decision.pv == moves("e2e4", "e7e5")
        assert decision.evaluation.centipawns == 7

    def test_split_multibyte_character(self):
        """Test a chunk boundary inside a UTF-8 sequence."""
        data = "info string é\nbestmove a2a3\n".encode("utf-8")
        split = data.index(b"\xc3") + 1

        accumulator = ResponseAccumulator()
        accumulator.feed(data[:split])
        accumulator.feed(data[split:])

        assert accumulator.decision().move == decode_move("a2a3")


class TestLastWins:
    """Tests for replacement of evaluation and pv."""

    def test_second_score_replaces_first(self):
        """Test that the later score wins, not a merge."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info depth 1 score cp 100 lowerbound\n")
        accumulator.feed(b"info depth 2 score cp -15\n")

        assert accumulator.evaluation == EvaluationReport(-15, Bound.EXACT)

    def test_later_pv_replaces_longer_pv(self):
        """Test that a shorter later pv replaces the earlier one."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info pv e2e4 e7e5 g1f3 b8c6\n")
        accumulator.feed(b"info pv d2d4 g8f6\n")
        accumulator.feed(b"bestmove d2d4\n")

        assert accumulator.decision().pv == moves("d2d4", "g8f6")

    def test_info_without_score_keeps_score(self):
        """Test that info lines without a score keep the current one."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info score cp 12 pv e2e4\n")
        accumulator.feed(b"info depth 5 currmove g1f3 currmovenumber 2\n")

        assert accumulator.evaluation == EvaluationReport(12)
        assert accumulator.principal_variation == moves("e2e4")

    def test_undecodable_pv_keeps_previous(self):
        """Test that a pv with no decodable move does not clear the pv."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info pv e2e4 e7e5\n")
        accumulator.feed(b"info pv zz99\n")

        assert accumulator.principal_variation == moves("e2e4", "e7e5")

    def test_malformed_info_is_not_an_error(self):
        """Test that garbage info content never aborts the response."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info score cp banana pv ??? e2e4\n")
        accumulator.feed(b"info \xff\xfe garbage\n")
        accumulator.feed(b"bestmove e2e4\n")

        decision = accumulator.decision()
        assert decision.evaluation is None
        assert decision.pv == moves("e2e4")


class TestRobustness:
    """Tests for unusual but valid output."""

    def test_crlf_line_endings(self):
        """Test Windows line endings."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info score cp 3 pv c2c4\r\nbestmove c2c4\r\n")

        decision = accumulator.decision()
        assert decision.move == decode_move("c2c4")
        assert decision.pv == moves("c2c4")

    def test_output_after_bestmove_ignored(self):
        """Test that lines after the terminal line are discarded."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info score cp 1 pv e2e4\nbestmove e2e4\ninfo score cp 999 pv d2d4\n")
        accumulator.feed(b"bestmove d2d4\n")

        decision = accumulator.decision()
        assert decision.move == decode_move("e2e4")
        assert decision.evaluation.centipawns == 1

    def test_undecodable_ponder_ignored(self):
        """Test that a bad ponder token does not fail the decision."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"bestmove e2e4 ponder (none)\n")

        decision = accumulator.decision()
        assert decision.move == decode_move("e2e4")
        assert decision.ponder is None

    def test_decision_while_collecting(self):
        """Test that asking for a decision too early is an error."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info depth 1 score cp 5\n")

        assert not accumulator.is_done()
        with pytest.raises(RuntimeError):
            accumulator.decision()

    def test_promotion_best_move(self):
        """Test a promotion as best move."""
        accumulator = ResponseAccumulator()
        accumulator.feed(b"info score mate 1 pv a7a8q\nbestmove a7a8q\n")

        decision = accumulator.decision()
        assert decision.move.promotion == "q"
        assert decision.evaluation.mate_in == 1
