"""Straightforward frame transformations used as the correctness reference.

Frames are packed RGB buffers, row by row from the top left corner. White
pixels (255, 255, 255) are background; everything else is the object.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List

from framelab.frames import FrameVerifier, SensorValue

__all__ = [
    "move_up",
    "move_left",
    "move_down",
    "move_right",
    "rotate_cw",
    "rotate_ccw",
    "mirror_x",
    "mirror_y",
    "run_reference",
]

WHITE = b"\xff\xff\xff"
FRAME_INTERVAL = 25


def _rows(frame: bytes, width: int, height: int) -> List[bytes]:
    data = bytes(frame)
    row_size = width * 3
    if len(data) != row_size * height:
        raise ValueError(
            f"frame holds {len(data)} bytes, {row_size * height} expected "
            f"for {width}x{height}"
        )
    return [data[y * row_size : (y + 1) * row_size] for y in range(height)]


def move_up(frame: bytes, width: int, height: int, offset: int) -> bytes:
    """Shift the image up by ``offset`` rows, filling the bottom with white."""
    if offset < 0:
        return move_down(frame, width, height, -offset)
    rows = _rows(frame, width, height)
    offset = min(offset, height)
    return b"".join(rows[offset:] + [WHITE * width] * offset)


def move_down(frame: bytes, width: int, height: int, offset: int) -> bytes:
    """Shift the image down by ``offset`` rows, filling the top with white."""
    if offset < 0:
        return move_up(frame, width, height, -offset)
    rows = _rows(frame, width, height)
    offset = min(offset, height)
    return b"".join([WHITE * width] * offset + rows[: height - offset])


def move_left(frame: bytes, width: int, height: int, offset: int) -> bytes:
    """Shift the image left by ``offset`` columns, filling the right with white."""
    if offset < 0:
        return move_right(frame, width, height, -offset)
    rows = _rows(frame, width, height)
    offset = min(offset, width)
    fill = WHITE * offset
    return b"".join(row[offset * 3 :] + fill for row in rows)


def move_right(frame: bytes, width: int, height: int, offset: int) -> bytes:
    """Shift the image right by ``offset`` columns, filling the left with white."""
    if offset < 0:
        return move_left(frame, width, height, -offset)
    rows = _rows(frame, width, height)
    offset = min(offset, width)
    fill = WHITE * offset
    return b"".join(fill + row[: (width - offset) * 3] for row in rows)


def _rotate_quarter_turns(frame: bytes, width: int, height: int, turns: int) -> bytes:
    rows = _rows(frame, width, height)
    if turns == 0:
        return b"".join(rows)
    if width != height:
        raise ValueError(f"rotation needs a square frame, got {width}x{height}")
    grid = [[row[i : i + 3] for i in range(0, len(row), 3)] for row in rows]
    for _ in range(turns):
        grid = [list(column) for column in zip(*reversed(grid))]
    return b"".join(b"".join(row) for row in grid)


def rotate_cw(frame: bytes, width: int, height: int, iterations: int) -> bytes:
    """Rotate a square image clockwise by 90 degrees, ``iterations`` times."""
    if iterations < 0:
        return rotate_ccw(frame, width, height, -iterations)
    return _rotate_quarter_turns(frame, width, height, iterations % 4)


def rotate_ccw(frame: bytes, width: int, height: int, iterations: int) -> bytes:
    """Rotate a square image counter-clockwise by 90 degrees, ``iterations`` times."""
    if iterations < 0:
        turns = (-iterations) % 4
    else:
        turns = (3 * iterations) % 4
    return _rotate_quarter_turns(frame, width, height, turns)


def mirror_x(frame: bytes, width: int, height: int) -> bytes:
    """Mirror on the X axis: the first row becomes the last."""
    return b"".join(reversed(_rows(frame, width, height)))


def mirror_y(frame: bytes, width: int, height: int) -> bytes:
    """Mirror on the Y axis: the first column becomes the last."""
    rows = _rows(frame, width, height)
    return b"".join(
        b"".join(row[i : i + 3] for i in range(len(row) - 3, -1, -3)) for row in rows
    )


_Operation = Callable[[bytes, int, int, int], bytes]

_OPERATIONS: Dict[str, _Operation] = {
    "D": move_right,
    "A": move_left,
    "W": move_up,
    "S": move_down,
    "CW": rotate_cw,
    "CCW": rotate_ccw,
    "MX": lambda frame, width, height, _unused: mirror_x(frame, width, height),
    "MY": lambda frame, width, height, _unused: mirror_y(frame, width, height),
}


def run_reference(
    sensor_values: Iterable[SensorValue],
    frame: bytes,
    width: int,
    height: int,
    verifier: FrameVerifier,
    grading_mode: bool,
) -> bytes:
    """Apply every instruction in turn, recording every 25th frame.

    Unknown keys leave the frame unchanged but still count as a frame.
    Returns the final frame.
    """
    current = bytes(frame)
    for processed, sensor in enumerate(sensor_values, start=1):
        operation = _OPERATIONS.get(sensor.key)
        if operation is not None:
            current = operation(current, width, height, sensor.value)
        if processed % FRAME_INTERVAL == 0:
            verifier.record(current, grading_mode)
    return current