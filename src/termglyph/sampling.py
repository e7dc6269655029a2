import numpy as np

from termglyph.errors import InvalidDimensions
from termglyph.model import SourceImage

BT601 = (0.299, 0.587, 0.114)


def validate_dimensions(image: SourceImage, width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise InvalidDimensions(f"Output size must be positive, got {width}x{height}")
    if image.width <= 0 or image.height <= 0:
        raise InvalidDimensions(f"Source image must be non-empty, got {image.width}x{image.height}")


def box_edges(src: int, count: int) -> tuple[np.ndarray, np.ndarray]:
    """Source pixel range [start, end) for each of `count` boxes along one axis.

    Boxes start at floor(i * src / count) and end at floor((i + 1) * src / count),
    widened to at least one pixel and kept inside the image.
    """
    idx = np.arange(count, dtype=np.int64)
    starts = np.minimum(idx * src // count, src - 1)
    ends = np.clip((idx + 1) * src // count, starts + 1, src)
    return starts, ends


class BoxSampler:
    """Averages source pixels over the sub-cell boxes of an output grid.

    Column prefix sums are computed once, so any range of output rows can be
    sampled independently (and concurrently) afterwards.
    """

    def __init__(self, image: SourceImage, width: int, height: int, subdivisions: tuple[int, int] = (1, 1)):
        validate_dimensions(image, width, height)
        self.width = width
        self.height = height
        self.sub_w, self.sub_h = subdivisions

        self._x0, self._x1 = box_edges(image.width, width * self.sub_w)
        self._y0, self._y1 = box_edges(image.height, height * self.sub_h)

        rgb = image.rgb.astype(np.int64)
        # (src_h + 1, src_w, 3) prefix sums down each column
        self._col_sums = np.zeros((image.height + 1, image.width, 3), dtype=np.int64)
        np.cumsum(rgb, axis=0, out=self._col_sums[1:])

    def sample(self, row_start: int = 0, row_stop: int | None = None) -> np.ndarray:
        """Sample output rows [row_start, row_stop).

        Returns uint8 array of shape (rows, cols, sub_h, sub_w, 3).
        """
        if row_stop is None:
            row_stop = self.height
        sy = slice(row_start * self.sub_h, row_stop * self.sub_h)
        y0, y1 = self._y0[sy], self._y1[sy]

        # Sum each box's rows, then prefix-sum across columns for the box widths
        strips = self._col_sums[y1] - self._col_sums[y0]  # (n_y, src_w, 3)
        row_sums = np.zeros((strips.shape[0], strips.shape[1] + 1, 3), dtype=np.int64)
        np.cumsum(strips, axis=1, out=row_sums[:, 1:])
        sums = row_sums[:, self._x1] - row_sums[:, self._x0]  # (n_y, n_x, 3)

        counts = ((y1 - y0)[:, None] * (self._x1 - self._x0)[None, :])[:, :, None]
        # Round half up in integer arithmetic
        avg = (2 * sums + counts) // (2 * counts)

        rows = row_stop - row_start
        cells = avg.reshape(rows, self.sub_h, self.width, self.sub_w, 3).transpose(0, 2, 1, 3, 4)
        return np.ascontiguousarray(cells, dtype=np.uint8)


def sample_grid(image: SourceImage, width: int, height: int, subdivisions: tuple[int, int] = (1, 1)) -> np.ndarray:
    """Sample every cell of a width x height grid. Returns (height, width, sub_h, sub_w, 3) uint8."""
    return BoxSampler(image, width, height, subdivisions).sample()


def luminance(rgb: np.ndarray, weights: tuple[float, float, float] = BT601) -> np.ndarray:
    """Weighted channel sum over the trailing axis, in the 0-255 range."""
    arr = np.asarray(rgb, dtype=np.float64)
    wr, wg, wb = weights
    return arr[..., 0] * wr + arr[..., 1] * wg + arr[..., 2] * wb


def to_luma8(rgb: np.ndarray, weights: tuple[float, float, float] = BT601) -> np.ndarray:
    return np.clip(np.floor(luminance(rgb, weights) + 0.5), 0, 255).astype(np.uint8)


def otsu_threshold(luma: np.ndarray) -> int:
    """Threshold maximising the between-class variance of the luma histogram.

    Values at or below the returned threshold form the dark class, so it can be
    passed straight to a strict greater-than binarisation.
    """
    histogram = np.bincount(np.asarray(luma, dtype=np.uint8).ravel(), minlength=256)
    total_weight = float(histogram.sum())
    sum_intensity = float(np.dot(np.arange(256), histogram))

    bg_sum = 0.0
    bg_weight = 0.0
    max_variance = 0.0
    best_threshold = 0
    for threshold, count in enumerate(histogram):
        bg_weight += count
        bg_sum += threshold * count
        fg_weight = total_weight - bg_weight
        if bg_weight == 0 or fg_weight == 0:
            continue
        fg_mean = (sum_intensity - bg_sum) / fg_weight
        variance = bg_weight * fg_weight * (bg_sum / bg_weight - fg_mean) ** 2
        if variance > max_variance:
            best_threshold = threshold
            max_variance = variance
    return best_threshold
