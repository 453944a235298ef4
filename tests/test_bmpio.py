import pytest

from framelab.bmpio import (
    Bitmap,
    Components,
    InvalidBitsPerPixelError,
    InvalidFormatError,
    InvalidSignatureError,
    decode_bmp,
    encode_bmp,
    format_frame,
    load_bmp,
    save_bmp,
    write_bmp,
)


def _image(width, height):
    return bytes((x * 7 + y * 13 + c * 29) % 256
                 for y in range(height) for x in range(width) for c in range(3))


@pytest.mark.parametrize("width,height", [(1, 1), (2, 3), (3, 2), (4, 4), (5, 1)])
def test_round_trip_rgb(width, height):
    pixels = _image(width, height)
    decoded = decode_bmp(encode_bmp(pixels, width, height))
    assert decoded == Bitmap(pixels, width, height, Components.RGB)


def test_header_fields():
    encoded = encode_bmp(_image(3, 2), 3, 2)
    assert encoded[:2] == b"BM"
    assert int.from_bytes(encoded[10:14], "little") == 54
    assert int.from_bytes(encoded[14:18], "little") == 40
    assert int.from_bytes(encoded[18:22], "little") == 3
    assert int.from_bytes(encoded[22:26], "little") == 2
    assert int.from_bytes(encoded[28:30], "little") == 24


def test_rows_are_padded_to_four_bytes():
    encoded = encode_bmp(_image(1, 3), 1, 3)
    assert (len(encoded) - 54) % 4 == 0
    assert (len(encoded) - 54) // 3 == 4


def test_pixels_stored_bgr_bottom_up():
    pixels = bytes([1, 2, 3, 4, 5, 6])  # 1 wide, 2 high
    encoded = encode_bmp(pixels, 1, 2)
    assert encoded[54:57] == bytes([6, 5, 4])


def test_rgba_round_trip_sets_alpha():
    rgba = bytes([10, 20, 30, 0, 40, 50, 60, 7])
    decoded = decode_bmp(encode_bmp(rgba, 2, 1, Components.RGBA), Components.RGBA)
    assert decoded.pixels == bytes([10, 20, 30, 255, 40, 50, 60, 255])


def test_32_bit_header_accepted():
    pixels = _image(2, 2)
    encoded = bytearray(encode_bmp(pixels, 2, 2))
    encoded[28] = 32
    assert decode_bmp(bytes(encoded)).pixels == pixels


def test_invalid_signature():
    encoded = bytearray(encode_bmp(_image(2, 2), 2, 2))
    encoded[0:2] = b"XX"
    with pytest.raises(InvalidSignatureError):
        decode_bmp(bytes(encoded))


def test_invalid_bits_per_pixel():
    encoded = bytearray(encode_bmp(_image(2, 2), 2, 2))
    encoded[28] = 8
    with pytest.raises(InvalidBitsPerPixelError):
        decode_bmp(bytes(encoded))


@pytest.mark.parametrize("cut", [10, 40, 60])
def test_truncated_data(cut):
    encoded = encode_bmp(_image(3, 3), 3, 3)
    with pytest.raises(InvalidFormatError):
        decode_bmp(encoded[:cut])


def test_zero_size_image_has_no_pixels():
    decoded = decode_bmp(encode_bmp(b"", 0, 0))
    assert decoded.pixels == b""
    assert (decoded.width, decoded.height) == (0, 0)


def test_encode_rejects_short_buffer():
    with pytest.raises(ValueError):
        encode_bmp(b"\x00" * 5, 2, 1)


def test_save_and_load(tmp_path):
    pixels = _image(3, 5)
    path = tmp_path / "image.bmp"
    save_bmp(path, pixels, 3, 5)
    assert load_bmp(path).pixels == pixels


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_bmp(tmp_path / "absent.bmp")


def test_write_bmp_keeps_channel_order(tmp_path):
    pixels = bytes([1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12])  # 2x2
    path = tmp_path / "raw.bmp"
    write_bmp(path, 2, 2, pixels)
    decoded = load_bmp(path)
    swapped = bytearray(pixels)
    swapped[0::3], swapped[2::3] = pixels[2::3], pixels[0::3]
    assert decoded.pixels == bytes(swapped)


def test_write_bmp_header_matches_encoder(tmp_path):
    pixels = _image(3, 2)
    path = tmp_path / "raw.bmp"
    write_bmp(path, 3, 2, pixels)
    assert path.read_bytes()[:54] == encode_bmp(pixels, 3, 2)[:54]


def test_format_frame():
    text = format_frame(2, 1, bytes([0, 255, 10, 1, 2, 3]))
    lines = text.splitlines()
    assert lines[1] == "[000,255,010][001,002,003]"
    assert lines[0] == lines[2] == "*" * 103
    assert text.endswith("\n")