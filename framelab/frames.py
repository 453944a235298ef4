"""Sensor instructions and verification of rendered frames against reference frames."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

__all__ = [
    "SensorValue",
    "FrameMismatchError",
    "ExtraFrameError",
    "MissingFramesError",
    "FrameVerifier",
]


@dataclass(frozen=True)
class SensorValue:
    """One instruction: a key such as 'W', 'CW' or 'MX' and its integer argument."""

    key: str
    value: int


class FrameMismatchError(Exception):
    """A verified frame differs from the recorded reference frame."""

    def __init__(self, frame_index: int) -> None:
        super().__init__(
            f"frame #{frame_index} is different compared to the reference implementation"
        )
        self.frame_index = frame_index


class ExtraFrameError(Exception):
    """More frames were verified than the reference recorded."""

    def __init__(self, frame_index: int) -> None:
        super().__init__(
            f"frame #{frame_index} in your application does not exist in the reference solution."
        )
        self.frame_index = frame_index


class MissingFramesError(Exception):
    """Fewer frames were verified than the reference recorded."""

    def __init__(self, verified: int, recorded: int, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f"your implementation only contains {verified} out of {recorded} required frames."
        )
        self.verified = verified
        self.recorded = recorded


@dataclass
class FrameVerifier:
    """Records reference frames and checks candidate frames against them in order."""

    stream: Optional[TextIO] = None
    recorded_count: int = 0
    verified_count: int = 0
    _frames: List[bytes] = field(default_factory=list, repr=False)

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def record(self, frame: bytes, grading_mode: bool) -> None:
        """Store a copy of a reference frame; in grading mode only count it."""
        if not grading_mode:
            del self._frames[self.recorded_count:]
            self._frames.append(bytes(frame))
        self.recorded_count += 1

    def verify(self, frame: bytes, grading_mode: bool) -> None:
        """Compare a frame with the next recorded one; in grading mode only count it."""
        if grading_mode:
            self.verified_count += 1
            return
        index = self.verified_count
        if index >= self.recorded_count or index >= len(self._frames):
            raise ExtraFrameError(index)
        if bytes(frame) != self._frames[index]:
            raise FrameMismatchError(index)
        print(
            f"SUCCESS: frame #{index} is the same compared to the reference implementation",
            file=self._out(),
        )
        self.verified_count += 1

    def check_all(self) -> None:
        """Raise if fewer frames were verified than recorded."""
        if self.verified_count < self.recorded_count:
            raise MissingFramesError(self.verified_count, self.recorded_count)

    def check_all_grading(self) -> None:
        """Raise if no frames were seen at all, otherwise reset both counters."""
        if not self.recorded_count and not self.verified_count:
            raise MissingFramesError(
                0,
                0,
                "your implementation did not output the same number of required frames "
                "as reference implementation",
            )
        self.recorded_count = 0
        self.verified_count = 0
        self._frames.clear()