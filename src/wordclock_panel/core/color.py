"""RGB565 color codec.

The controller stores its display color as a 16-bit packed value with 5 bits
of red, 6 bits of green and 5 bits of blue. Color pickers work in 24-bit RGB.
"""

import re

RED_BITS = 5
GREEN_BITS = 6
BLUE_BITS = 5

MAX_PACKED = 0xFFFF

_RGB_FUNC = re.compile(r"^rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)$", re.IGNORECASE)


def _scale_down(value: int, bits: int) -> int:
    # floor, never round: drops exactly the bits _scale_up replicates
    return value // (1 << (8 - bits))


def _scale_up(value: int, bits: int) -> int:
    return (value << (8 - bits)) | (value >> (2 * bits - 8))


def encode(rgb: tuple[int, int, int]) -> int:
    """Pack an 8-bit-per-channel RGB triple into RGB565.

    Args:
        rgb: (R, G, B) tuple, each channel 0-255

    Returns:
        Packed 16-bit color
    """
    r, g, b = rgb
    r5 = _scale_down(r, RED_BITS)
    g6 = _scale_down(g, GREEN_BITS)
    b5 = _scale_down(b, BLUE_BITS)
    return (r5 << 11) | (g6 << 5) | b5


def decode(value: int) -> tuple[int, int, int]:
    """Expand an RGB565 value into an 8-bit-per-channel RGB triple.

    Args:
        value: Packed 16-bit color

    Returns:
        (R, G, B) tuple
    """
    r5 = (value >> 11) & 0x1F
    g6 = (value >> 5) & 0x3F
    b5 = value & 0x1F
    return (
        _scale_up(r5, RED_BITS),
        _scale_up(g6, GREEN_BITS),
        _scale_up(b5, BLUE_BITS),
    )


def parse_color(color: str) -> tuple[int, int, int]:
    """Parse a color string to RGB tuple.

    Accepts "#FF0000", "FF0000" and the CSS "rgb(255, 0, 0)" form.

    Args:
        color: Color string

    Returns:
        (R, G, B) tuple
    """
    text = color.strip()
    match = _RGB_FUNC.match(text)
    if match:
        channels = tuple(int(c) for c in match.groups())
        if any(c > 255 for c in channels):
            raise ValueError(f"Invalid color: {color}")
        return channels  # type: ignore[return-value]

    text = text.lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Invalid color: {color}")
    try:
        return (
            int(text[0:2], 16),
            int(text[2:4], 16),
            int(text[4:6], 16),
        )
    except ValueError as e:
        raise ValueError(f"Invalid color: {color}") from e


def format_color(rgb: tuple[int, int, int]) -> str:
    """Format an RGB tuple as an upper-case hex string like "#F80000"."""
    r, g, b = rgb
    return f"#{r:02X}{g:02X}{b:02X}"


def encode_hex(color: str) -> int:
    """Parse a color string and pack it into RGB565."""
    return encode(parse_color(color))


def decode_hex(value: int) -> str:
    """Expand a packed RGB565 value into a hex color string."""
    return format_color(decode(value))
