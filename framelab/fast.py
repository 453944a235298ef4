"""Frame rendering that folds every instruction into one affine transform.

Every move, rotation and mirror is an affine map of pixel coordinates
whose linear part is one of the eight signed permutation matrices. The
object's pixels are extracted once. Each instruction is composed into a
single running transform, and the pixels are only placed when a frame has
to be produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from framelab.frames import FrameVerifier, SensorValue

__all__ = ["Transform", "team_info", "run_optimized"]

FRAME_INTERVAL = 25
WHITE = b"\xff\xff\xff"
SEPARATOR = "*" * 103

# Product table of the eight linear parts: _KIND_PRODUCTS[a][b] is the kind of
# "apply a, then b". Bit 2 swaps the axes, bit 1 negates the row and bit 0
# negates the column, in that order.
_KIND_PRODUCTS: Tuple[Tuple[int, ...], ...] = (
    (0, 1, 2, 3, 4, 5, 6, 7),
    (1, 0, 3, 2, 6, 7, 4, 5),
    (2, 3, 0, 1, 5, 4, 7, 6),
    (3, 2, 1, 0, 7, 6, 5, 4),
    (4, 5, 6, 7, 0, 1, 2, 3),
    (5, 4, 7, 6, 2, 3, 0, 1),
    (6, 7, 4, 5, 1, 0, 3, 2),
    (7, 6, 5, 4, 3, 2, 1, 0),
)


@dataclass(frozen=True)
class Transform:
    """An affine map of (row, col): a signed axis permutation followed by a shift."""

    kind: int = 0
    row: int = 0
    col: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.kind < 8:
            raise ValueError(f"transform kind must be in 0..7, got {self.kind}")

    def _linear(self, row: int, col: int) -> Tuple[int, int]:
        if self.kind & 4:
            row, col = col, row
        if self.kind & 1:
            col = -col
        if self.kind & 2:
            row = -row
        return row, col

    def __call__(self, row: int, col: int) -> Tuple[int, int]:
        """Map a pixel position to its transformed position."""
        row, col = self._linear(row, col)
        return row + self.row, col + self.col

    def compose(self, other: "Transform") -> "Transform":
        """Return the transform that applies ``self`` and then ``other``."""
        row, col = other._linear(self.row, self.col)
        return Transform(
            _KIND_PRODUCTS[self.kind][other.kind],
            row + other.row,
            col + other.col,
        )


def team_info() -> str:
    """Return the team information banner."""
    return "\n".join(
        [SEPARATOR, "Team Information:", "\tteam_name: Cheesecake"]
    ) + "\n"


_Pixel = Tuple[int, int, bytes]


def _object_pixels(frame: bytes, width: int, height: int) -> List[_Pixel]:
    data = bytes(frame)
    if len(data) != width * height * 3:
        raise ValueError(
            f"frame holds {len(data)} bytes, {width * height * 3} expected "
            f"for {width}x{height}"
        )
    pixels = []
    for index in range(width * height):
        value = data[index * 3 : index * 3 + 3]
        if value != WHITE:
            row, col = divmod(index, width)
            pixels.append((row, col, value))
    return pixels


def _render(pixels: List[_Pixel], transform: Transform, width: int, height: int) -> bytes:
    buffer = bytearray(WHITE * (width * height))
    for row, col, value in pixels:
        r, c = transform(row, col)
        if 0 <= r < height and 0 <= c < width:
            pos = (r * width + c) * 3
            buffer[pos : pos + 3] = bytes(
                a & b for a, b in zip(buffer[pos : pos + 3], value)
            )
    return bytes(buffer)


def _step(sensor: SensorValue, width: int, height: int) -> Optional[Transform]:
    key, value = sensor.key, sensor.value
    if key == "W":
        return Transform(0, -value, 0)
    if key == "S":
        return Transform(0, value, 0)
    if key == "A":
        return Transform(0, 0, -value)
    if key == "D":
        return Transform(0, 0, value)
    if key in ("CW", "CCW"):
        turns = (value if key == "CW" else -value) % 4
        rotations = {
            1: Transform(5, 0, width - 1),
            2: Transform(3, width - 1, width - 1),
            3: Transform(6, width - 1, 0),
        }
        return rotations.get(turns)
    if key == "MX":
        return Transform(2, height - 1, 0)
    if key == "MY":
        return Transform(1, 0, width - 1)
    return None


def run_optimized(
    sensor_values: Iterable[SensorValue],
    frame: bytes,
    width: int,
    height: int,
    verifier: FrameVerifier,
    grading_mode: bool,
) -> Transform:
    """Apply every instruction, verifying every 25th rendered frame.

    Unknown keys leave the image unchanged but still count as a frame.
    Returns the accumulated transform.
    """
    pixels = _object_pixels(frame, width, height)
    transform = Transform()
    for processed, sensor in enumerate(sensor_values, start=1):
        step = _step(sensor, width, height)
        if step is not None:
            transform = transform.compose(step)
        if processed % FRAME_INTERVAL == 0:
            verifier.verify(_render(pixels, transform, width, height), grading_mode)
    return transform