DEFAULT_RAMP = " .:-=+*#%@"

ASCII_PRINTABLE = "".join(chr(i) for i in range(32, 127))

# Braille patterns: U+2800 to U+28FF (256 characters, 2x4 dot grid)
BRAILLE_BASE = 0x2800
BRAILLE = "".join(chr(i) for i in range(BRAILLE_BASE, BRAILLE_BASE + 256))

# Quadrant blocks indexed by bitmask: UL=1, UR=2, LL=4, LR=8
QUADRANTS = " ▘▝▀▖▌▞▛▗▚▐▜▄▙▟█"

# Symbols for Legacy Computing sextants: U+1FB00-U+1FB3B (60 characters).
# The four masks with a Block Elements equivalent have no codepoint of their own.
SEXTANT_BASE = 0x1FB00
SEXTANT_SPECIAL = {
    0: " ",
    21: "▌",  # left half block
    42: "▐",  # right half block
    63: "█",  # full block
}


def _build_sextants() -> str:
    glyphs = []
    skipped = 0
    for mask in range(64):
        if mask in SEXTANT_SPECIAL:
            glyphs.append(SEXTANT_SPECIAL[mask])
            skipped += 1
        else:
            glyphs.append(chr(SEXTANT_BASE + mask - skipped))
    return "".join(glyphs)


# Sextants indexed by bitmask: UL=1, UR=2, ML=4, MR=8, LL=16, LR=32
SEXTANTS = _build_sextants()
