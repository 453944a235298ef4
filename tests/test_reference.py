import io

import pytest

from framelab.frames import ExtraFrameError, FrameMismatchError, FrameVerifier, SensorValue
from framelab.reference import (
    mirror_x,
    mirror_y,
    move_down,
    move_left,
    move_right,
    move_up,
    rotate_ccw,
    rotate_cw,
    run_reference,
)

WHITE = b"\xff\xff\xff"


def px(n):
    return bytes((n, n + 1, n + 2))


def make_frame(values):
    return b"".join(px(v) for v in values)


# 3x3 frame with distinct non-white pixels
A, B, C, D, E, F, G, H, I = (10, 20, 30, 40, 50, 60, 70, 80, 90)
FRAME3 = make_frame([A, B, C, D, E, F, G, H, I])


def test_move_up_shifts_rows_and_fills_white():
    result = move_up(FRAME3, 3, 3, 1)
    assert result == make_frame([D, E, F, G, H, I]) + WHITE * 3


def test_move_down_shifts_rows_and_fills_white():
    result = move_down(FRAME3, 3, 3, 2)
    assert result == WHITE * 6 + make_frame([A, B, C])


def test_move_left_shifts_columns():
    result = move_left(FRAME3, 3, 3, 1)
    assert result == (
        make_frame([B, C]) + WHITE + make_frame([E, F]) + WHITE + make_frame([H, I]) + WHITE
    )


def test_move_right_shifts_columns():
    result = move_right(FRAME3, 3, 3, 1)
    assert result == (
        WHITE + make_frame([A, B]) + WHITE + make_frame([D, E]) + WHITE + make_frame([G, H])
    )


@pytest.mark.parametrize(
    "func, opposite",
    [(move_up, move_down), (move_down, move_up), (move_left, move_right), (move_right, move_left)],
)
def test_negative_offset_moves_the_other_way(func, opposite):
    assert func(FRAME3, 3, 3, -1) == opposite(FRAME3, 3, 3, 1)


def test_zero_offset_is_identity():
    assert move_up(FRAME3, 3, 3, 0) == FRAME3
    assert move_right(FRAME3, 3, 3, 0) == FRAME3


def test_rotate_cw_two_by_two():
    frame = make_frame([A, B, C, D])
    assert rotate_cw(frame, 2, 2, 1) == make_frame([C, A, D, B])


def test_rotate_cw_four_times_is_identity():
    assert rotate_cw(FRAME3, 3, 3, 4) == FRAME3


def test_rotate_cw_then_ccw_is_identity():
    turned = rotate_cw(FRAME3, 3, 3, 1)
    assert rotate_ccw(turned, 3, 3, 1) == FRAME3


def test_rotate_ccw_equals_three_cw():
    assert rotate_ccw(FRAME3, 3, 3, 1) == rotate_cw(FRAME3, 3, 3, 3)


def test_negative_rotations():
    assert rotate_cw(FRAME3, 3, 3, -1) == rotate_ccw(FRAME3, 3, 3, 1)
    assert rotate_ccw(FRAME3, 3, 3, -1) == rotate_cw(FRAME3, 3, 3, 1)


def test_rotate_non_square_raises():
    frame = make_frame([A, B, C, D, E, F])
    with pytest.raises(ValueError):
        rotate_cw(frame, 3, 2, 1)


def test_wrong_frame_length_raises():
    with pytest.raises(ValueError):
        move_up(FRAME3[:-1], 3, 3, 1)


def test_mirror_x_reverses_rows():
    assert mirror_x(FRAME3, 3, 3) == make_frame([G, H, I, D, E, F, A, B, C])


def test_mirror_y_reverses_columns():
    assert mirror_y(FRAME3, 3, 3) == make_frame([C, B, A, F, E, D, I, H, G])


def test_mirrors_are_involutions():
    assert mirror_x(mirror_x(FRAME3, 3, 3), 3, 3) == FRAME3
    assert mirror_y(mirror_y(FRAME3, 3, 3), 3, 3) == FRAME3


def test_run_reference_records_every_25th_frame():
    verifier = FrameVerifier(stream=io.StringIO())
    values = [SensorValue("MX", 0)] * 50
    final = run_reference(values, FRAME3, 3, 3, verifier, False)
    assert verifier.recorded_count == 2
    assert final == FRAME3
    verifier.verify(mirror_x(FRAME3, 3, 3), False)
    verifier.verify(FRAME3, False)
    assert verifier.verified_count == 2
    with pytest.raises(ExtraFrameError):
        verifier.verify(FRAME3, False)


def test_run_reference_unknown_key_counts_but_does_nothing():
    verifier = FrameVerifier(stream=io.StringIO())
    values = [SensorValue("ZZ", 5)] * 24 + [SensorValue("D", 1)]
    final = run_reference(values, FRAME3, 3, 3, verifier, False)
    assert verifier.recorded_count == 1
    assert final == move_right(FRAME3, 3, 3, 1)
    with pytest.raises(FrameMismatchError):
        verifier.verify(FRAME3, False)


def test_run_reference_grading_mode_only_counts():
    verifier = FrameVerifier(stream=io.StringIO())
    values = [SensorValue("CW", 1)] * 25
    final = run_reference(values, FRAME3, 3, 3, verifier, True)
    assert verifier.recorded_count == 1
    assert final == rotate_cw(FRAME3, 3, 3, 1)


def test_run_reference_sequence_composes():
    verifier = FrameVerifier(stream=io.StringIO())
    values = [SensorValue("W", 1), SensorValue("A", 1)]
    final = run_reference(values, FRAME3, 3, 3, verifier, False)
    assert final == move_left(move_up(FRAME3, 3, 3, 1), 3, 3, 1)
    assert verifier.recorded_count == 0