# framelab

framelab reads 24-bit BMP images into packed RGB frame buffers. It replays a log
of sensor instructions on a frame, and each instruction moves, rotates or mirrors
the object in the frame. White pixels `(255, 255, 255)` are background and all
other pixels belong to the object.

Two renderers process the same log:

- `framelab.reference` applies each instruction to the whole frame, one after another.
- `framelab.fast` folds the instructions into a single affine `Transform` and places only the non-white pixels.

After every 25 instructions, the reference renderer records its frame in a
`FrameVerifier`. At the same points, the fast renderer checks its own frame
against that record.

The package also contains `framelab.allocator`, a segregated-free-list
malloc/free/realloc that runs on a simulated heap.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Sensor instructions

Each instruction is a `framelab.frames.SensorValue(key, value)`.

| Key   | Effect                                                   |
|-------|----------------------------------------------------------|
| `W`   | move the object up by `value` pixels                     |
| `A`   | move the object left by `value` pixels                   |
| `S`   | move the object down by `value` pixels                   |
| `D`   | move the object right by `value` pixels                  |
| `CW`  | rotate clockwise by 90 degrees, `value` times            |
| `CCW` | rotate counter-clockwise by 90 degrees, `value` times    |
| `MX`  | mirror on the X axis (the first row becomes the last)    |
| `MY`  | mirror on the Y axis (the first column becomes the last) |

Details of how the keys are handled:

- `MX` and `MY` ignore the value.
- A negative offset or rotation count moves or rotates the other way.
- A key that is not in the table leaves the frame unchanged, but it still counts towards the 25-instruction interval.

## Bitmaps: `framelab.bmpio`

- `load_bmp(path, components)` reads a file and returns a `Bitmap(pixels, width, height, components)`. `decode_bmp(data, components)` does the same for bytes already in memory.
  - `components` is `Components.RGB` or `Components.RGBA`.
  - Pixels are stored top-down with no row padding.
  - The functions raise `InvalidFormatError`, `InvalidSignatureError` or `InvalidBitsPerPixelError`. All three are subclasses of `BmpError`.
  - Both 24-bit and 32-bit files are accepted, but only the first three bytes of each pixel are read.
- `encode_bmp(pixels, width, height, components)` returns the bytes of a 24-bit BMP file. `save_bmp(path, ...)` writes those bytes to a file.
- `write_bmp(path, width, height, pixels)` writes the rows bottom-up with padding but leaves the channel order as it is.
- `format_frame(width, height, pixels)` renders a frame as text, one `[RRR,GGG,BBB]` cell per pixel.

## Single-frame transforms: `framelab.reference`

Each of these functions takes a frame buffer and returns a new `bytes` frame:

- `move_up`, `move_down`, `move_left`, `move_right` take `(frame, width, height, offset)`. The uncovered area is filled with white.
- `rotate_cw` and `rotate_ccw` take `(frame, width, height, iterations)`. They need a square frame and raise `ValueError` for any other shape, unless the net rotation is zero.
- `mirror_x` and `mirror_y` take `(frame, width, height)`.

`run_reference(sensor_values, frame, width, height, verifier, grading_mode)`
applies the whole log and returns the final frame. Every 25th frame is recorded
in the verifier.

## Affine renderer: `framelab.fast`

`Transform(kind, row, col)` maps a pixel position `(row, col)`. It first applies
one of the eight signed axis permutations, selected by `kind` 0–7, and then
shifts by `(row, col)`.

- `t.compose(u)` returns the transform that applies `t` and then `u`.
- Calling `t(row, col)` maps a single position.

`run_optimized(sensor_values, frame, width, height, verifier, grading_mode)`
works in three steps:

1. It extracts the object pixels once.
2. It composes every instruction into one running transform.
3. Every 25 instructions, it renders a frame and passes it to `verifier.verify`.

The function returns the final `Transform`. Pixels that fall outside the frame
are dropped.

`team_info()` returns the team banner as a string.

## Verifying frames: `framelab.frames`

`FrameVerifier(stream=None)` provides four methods:

- `record(frame, grading_mode)` stores a copy of a reference frame.
- `verify(frame, grading_mode)` compares a frame with the next recorded one.
  - On a match it prints a `SUCCESS: frame #N ...` line to `stream`, or to stdout when `stream` is `None`.
  - It raises `FrameMismatchError` when the frames differ.
  - It raises `ExtraFrameError` when no recorded frame is left to compare with.
- `check_all()` raises `MissingFramesError` if fewer frames were verified than were recorded.
- `check_all_grading()` raises `MissingFramesError` if no frames were seen at all. Otherwise it resets the verifier.

In grading mode, `record` and `verify` only count frames and do not store or
compare them.

```python
from framelab.bmpio import load_bmp, Components
from framelab.frames import FrameVerifier, SensorValue
from framelab.reference import run_reference
from framelab.fast import run_optimized

image = load_bmp("object.bmp", Components.RGB)
log = [SensorValue("W", 3)] * 25

verifier = FrameVerifier()
run_reference(log, image.pixels, image.width, image.height, verifier, False)
run_optimized(log, image.pixels, image.width, image.height, verifier, False)
verifier.check_all()
```

## Allocator: `framelab.allocator`

`MemoryHeap(max_size, base)` is a growable byte region. It provides:

- `sbrk(increment)`, which raises `OutOfMemoryError` when the heap would exceed `max_size`;
- `heap_lo()`, `heap_hi()`, `heapsize()` and `pagesize()`;
- `read(address, size)` and `write(address, data)`.

`Allocator(heap=None, stream=None)` manages a heap with 19 size-banded,
address-ordered free lists:

- Allocation is first-fit.
- Freed blocks are coalesced with free neighbours immediately.
- Pointers are integer addresses of payloads, and `None` stands for a null pointer.

`check()` returns `True` when the heap is consistent. Otherwise it writes the
problems to `stream`, or to stderr when `stream` is `None`. `find_list(size)`
returns the index of the free list that holds blocks of that size.

```python
from framelab.allocator import Allocator

allocator = Allocator()
p = allocator.malloc(100)
allocator.heap.write(p, b"hello")
p = allocator.realloc(p, 400)
assert allocator.heap.read(p, 5) == b"hello"
allocator.free(p)
assert allocator.check()
```

## What framelab does not do

- It has no command-line program. Load images, build the `SensorValue` lists and run the renderers from Python.
- It has no parser for sensor-log files.
- It does not time or benchmark the renderers, and it does not report a speedup between them.