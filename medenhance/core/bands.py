from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Tuple


def split_rows(start: int, stop: int, parts: int) -> List[Tuple[int, int]]:
    """Split the row range [start, stop) into at most ``parts`` contiguous bands"""
    total = stop - start
    if total <= 0:
        return []
    parts = max(1, min(parts, total))
    step, extra = divmod(total, parts)

    bands = []
    row = start
    for index in range(parts):
        height = step + (1 if index < extra else 0)
        bands.append((row, row + height))
        row += height
    return bands


def run_row_bands(work: Callable[[int, int], None], start: int, stop: int, workers: int = 1):
    """
    Call ``work(band_start, band_stop)`` over bands covering [start, stop).

    Every band reads a shared read-only snapshot and writes disjoint output
    rows, so bands may run on a thread pool. numpy releases the GIL inside the
    per-band array arithmetic.
    """
    bands = split_rows(start, stop, workers)
    if len(bands) <= 1:
        for band_start, band_stop in bands:
            work(band_start, band_stop)
        return

    with ThreadPoolExecutor(max_workers=len(bands)) as executor:
        futures = [executor.submit(work, band_start, band_stop) for band_start, band_stop in bands]
        for future in futures:
            future.result()
