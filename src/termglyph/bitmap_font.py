import numpy as np

FONT_WIDTH = 5
FONT_HEIGHT = 7

# Classic 5x7 LCD font (as in the Adafruit Monochron firmware), printable ASCII only.
# Each glyph is five column bytes, left to right; bit 0 is the top row.
FONT_5X7 = {
    32: (0x00, 0x00, 0x00, 0x00, 0x00),
    33: (0x00, 0x00, 0x5F, 0x00, 0x00),
    34: (0x00, 0x07, 0x00, 0x07, 0x00),
    35: (0x14, 0x7F, 0x14, 0x7F, 0x14),
    36: (0x24, 0x2A, 0x7F, 0x2A, 0x12),
    37: (0x23, 0x13, 0x08, 0x64, 0x62),
    38: (0x36, 0x49, 0x55, 0x22, 0x50),
    39: (0x00, 0x05, 0x03, 0x00, 0x00),
    40: (0x00, 0x1C, 0x22, 0x41, 0x00),
    41: (0x00, 0x41, 0x22, 0x1C, 0x00),
    42: (0x08, 0x2A, 0x1C, 0x2A, 0x08),
    43: (0x08, 0x08, 0x3E, 0x08, 0x08),
    44: (0x00, 0x50, 0x30, 0x00, 0x00),
    45: (0x08, 0x08, 0x08, 0x08, 0x08),
    46: (0x00, 0x60, 0x60, 0x00, 0x00),
    47: (0x20, 0x10, 0x08, 0x04, 0x02),
    48: (0x3E, 0x51, 0x49, 0x45, 0x3E),
    49: (0x00, 0x42, 0x7F, 0x40, 0x00),
    50: (0x42, 0x61, 0x51, 0x49, 0x46),
    51: (0x21, 0x41, 0x45, 0x4B, 0x31),
    52: (0x18, 0x14, 0x12, 0x7F, 0x10),
    53: (0x27, 0x45, 0x45, 0x45, 0x39),
    54: (0x3C, 0x4A, 0x49, 0x49, 0x30),
    55: (0x01, 0x71, 0x09, 0x05, 0x03),
    56: (0x36, 0x49, 0x49, 0x49, 0x36),
    57: (0x06, 0x49, 0x49, 0x29, 0x1E),
    58: (0x00, 0x36, 0x36, 0x00, 0x00),
    59: (0x00, 0x56, 0x36, 0x00, 0x00),
    60: (0x00, 0x08, 0x14, 0x22, 0x41),
    61: (0x14, 0x14, 0x14, 0x14, 0x14),
    62: (0x41, 0x22, 0x14, 0x08, 0x00),
    63: (0x02, 0x01, 0x51, 0x09, 0x06),
    64: (0x32, 0x49, 0x79, 0x41, 0x3E),
    65: (0x7E, 0x11, 0x11, 0x11, 0x7E),
    66: (0x7F, 0x49, 0x49, 0x49, 0x36),
    67: (0x3E, 0x41, 0x41, 0x41, 0x22),
    68: (0x7F, 0x41, 0x41, 0x22, 0x1C),
    69: (0x7F, 0x49, 0x49, 0x49, 0x41),
    70: (0x7F, 0x09, 0x09, 0x01, 0x01),
    71: (0x3E, 0x41, 0x41, 0x51, 0x32),
    72: (0x7F, 0x08, 0x08, 0x08, 0x7F),
    73: (0x00, 0x41, 0x7F, 0x41, 0x00),
    74: (0x20, 0x40, 0x41, 0x3F, 0x01),
    75: (0x7F, 0x08, 0x14, 0x22, 0x41),
    76: (0x7F, 0x40, 0x40, 0x40, 0x40),
    77: (0x7F, 0x02, 0x04, 0x02, 0x7F),
    78: (0x7F, 0x04, 0x08, 0x10, 0x7F),
    79: (0x3E, 0x41, 0x41, 0x41, 0x3E),
    80: (0x7F, 0x09, 0x09, 0x09, 0x06),
    81: (0x3E, 0x41, 0x51, 0x21, 0x5E),
    82: (0x7F, 0x09, 0x19, 0x29, 0x46),
    83: (0x46, 0x49, 0x49, 0x49, 0x31),
    84: (0x01, 0x01, 0x7F, 0x01, 0x01),
    85: (0x3F, 0x40, 0x40, 0x40, 0x3F),
    86: (0x1F, 0x20, 0x40, 0x20, 0x1F),
    87: (0x7F, 0x20, 0x18, 0x20, 0x7F),
    88: (0x63, 0x14, 0x08, 0x14, 0x63),
    89: (0x03, 0x04, 0x78, 0x04, 0x03),
    90: (0x61, 0x51, 0x49, 0x45, 0x43),
    91: (0x00, 0x00, 0x7F, 0x41, 0x41),
    92: (0x02, 0x04, 0x08, 0x10, 0x20),
    93: (0x41, 0x41, 0x7F, 0x00, 0x00),
    94: (0x04, 0x02, 0x01, 0x02, 0x04),
    95: (0x40, 0x40, 0x40, 0x40, 0x40),
    96: (0x00, 0x01, 0x02, 0x04, 0x00),
    97: (0x20, 0x54, 0x54, 0x54, 0x78),
    98: (0x7F, 0x48, 0x44, 0x44, 0x38),
    99: (0x38, 0x44, 0x44, 0x44, 0x20),
    100: (0x38, 0x44, 0x44, 0x48, 0x7F),
    101: (0x38, 0x54, 0x54, 0x54, 0x18),
    102: (0x08, 0x7E, 0x09, 0x01, 0x02),
    103: (0x08, 0x14, 0x54, 0x54, 0x3C),
    104: (0x7F, 0x08, 0x04, 0x04, 0x78),
    105: (0x00, 0x44, 0x7D, 0x40, 0x00),
    106: (0x20, 0x40, 0x44, 0x3D, 0x00),
    107: (0x00, 0x7F, 0x10, 0x28, 0x44),
    108: (0x00, 0x41, 0x7F, 0x40, 0x00),
    109: (0x7C, 0x04, 0x18, 0x04, 0x78),
    110: (0x7C, 0x08, 0x04, 0x04, 0x78),
    111: (0x38, 0x44, 0x44, 0x44, 0x38),
    112: (0x7C, 0x14, 0x14, 0x14, 0x08),
    113: (0x08, 0x14, 0x14, 0x18, 0x7C),
    114: (0x7C, 0x08, 0x04, 0x04, 0x08),
    115: (0x48, 0x54, 0x54, 0x54, 0x20),
    116: (0x04, 0x3F, 0x44, 0x40, 0x20),
    117: (0x3C, 0x40, 0x40, 0x20, 0x7C),
    118: (0x1C, 0x20, 0x40, 0x20, 0x1C),
    119: (0x3C, 0x40, 0x30, 0x40, 0x3C),
    120: (0x44, 0x28, 0x10, 0x28, 0x44),
    121: (0x0C, 0x50, 0x50, 0x50, 0x3C),
    122: (0x44, 0x64, 0x54, 0x4C, 0x44),
    123: (0x00, 0x08, 0x36, 0x41, 0x00),
    124: (0x00, 0x00, 0x7F, 0x00, 0x00),
    125: (0x00, 0x41, 0x36, 0x08, 0x00),
    126: (0x08, 0x04, 0x08, 0x10, 0x08),
}


def glyph_bitmap(char: str) -> np.ndarray:
    """Rasterise one character as a (FONT_HEIGHT, FONT_WIDTH) uint8 array of 0 or 255.

    Characters outside printable ASCII render blank, like a space.
    """
    columns = FONT_5X7.get(ord(char), FONT_5X7[32])
    bitmap = np.zeros((FONT_HEIGHT, FONT_WIDTH), dtype=np.uint8)
    for x, column in enumerate(columns):
        for y in range(FONT_HEIGHT):
            if column & (1 << y):
                bitmap[y, x] = 255
    return bitmap
