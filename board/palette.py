"""
Series and slice colour assignment.

Colours missing from an explicit palette come from a fallback colour source,
which defaults to cycling the default palette by series index.
"""

from typing import Callable, List, Optional, Sequence

from board.config_loader import DEFAULT_PALETTE

ColorSource = Callable[[int], str]


def cycle_color(index: int, palette: Sequence[str] = DEFAULT_PALETTE) -> str:
    return palette[index % len(palette)]


def series_colors(
    count: int,
    explicit: Optional[Sequence[str]] = None,
    fallback: Optional[ColorSource] = None,
) -> List[str]:
    """
    One colour per line/bar series. The explicit palette is indexed without
    wrapping; empty or missing entries are filled from `fallback`.
    """
    fallback = fallback or cycle_color
    explicit = explicit or []
    colors = []
    for i in range(count):
        color = explicit[i] if i < len(explicit) else None
        colors.append(color or fallback(i))
    return colors


def slice_colors(count: int, explicit: Optional[Sequence[str]] = None) -> List[str]:
    """One colour per pie slice, wrapping around the palette."""
    palette = list(explicit) if explicit else list(DEFAULT_PALETTE)
    return [palette[i % len(palette)] for i in range(count)]
