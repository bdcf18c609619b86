"""
Gradient output with two alternating layers
"""
import logging
import threading
from datetime import datetime
from typing import NamedTuple, Optional

from PIL import Image

from sunsetgrad.sampler import ColorPair

log = logging.getLogger('sunsetgrad.gradient')


class Layer(NamedTuple):
    colors: Optional[ColorPair]
    active: bool
    updated: Optional[datetime]


def gradient_css(colors: ColorPair) -> str:
    return f'linear-gradient({colors.top.css()}, {colors.bot.css()})'


class GradientOutput:
    """
    Holds what is currently painted.

    Each apply() writes the layer that is not showing, marks it active and
    only then deactivates the other one, so a viewer cross-fading between the
    two never sees an empty frame. With crossfade off a single layer is
    reused.
    """

    def __init__(self, crossfade=True):
        self.crossfade = crossfade
        self._layers = [Layer(None, False, None), Layer(None, False, None)]
        self._active = None
        self._lock = threading.Lock()

    def apply(self, colors: ColorPair):
        log.debug(f"Applying gradient - {colors.top}, {colors.bot}")
        with self._lock:
            previous = self._active
            if self.crossfade and previous is not None:
                target = 1 - previous
            else:
                target = 0
            self._layers[target] = Layer(colors, True, datetime.now())
            self._active = target
            if previous is not None and previous != target:
                old = self._layers[previous]
                self._layers[previous] = old._replace(active=False)

    @property
    def layers(self):
        with self._lock:
            return tuple(self._layers)

    @property
    def current(self) -> Optional[Layer]:
        with self._lock:
            if self._active is None:
                return None
            return self._layers[self._active]

    def describe(self) -> Optional[str]:
        """CSS description of the active gradient, or None before the first apply."""
        layer = self.current
        return gradient_css(layer.colors) if layer else None

    def render(self, width, height) -> Optional[Image.Image]:
        """Vertical top-to-bottom rendering of the active gradient."""
        layer = self.current
        if layer is None:
            return None
        top, bot = layer.colors
        column = Image.new('RGB', (1, height))
        span = max(height - 1, 1)
        column.putdata([
            tuple(round(t + (b - t) * y / span) for t, b in zip(top, bot))
            for y in range(height)
        ])
        return column.resize((width, height), Image.NEAREST)
