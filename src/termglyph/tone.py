import numpy as np

PIVOT = 128


def adjust_tone_array(
    samples: np.ndarray, brightness: int = 0, contrast: float = 1.0, invert: bool = False
) -> np.ndarray:
    """Apply contrast, then brightness, then inversion to uint8 samples.

    Contrast scales each channel about mid-grey and is clamped before the
    brightness offset is added, so the order changes which values clip.
    """
    out = np.floor(PIVOT + (samples.astype(np.float64) - PIVOT) * contrast + 0.5)
    out = np.clip(out, 0, 255)
    out = np.clip(out + brightness, 0, 255)
    if invert:
        out = 255 - out
    return out.astype(np.uint8)


def adjust_tone(
    sample: tuple[int, int, int], brightness: int = 0, contrast: float = 1.0, invert: bool = False
) -> tuple[int, int, int]:
    adjusted = adjust_tone_array(np.clip(np.asarray(sample), 0, 255), brightness, contrast, invert)
    return tuple(int(v) for v in adjusted)
