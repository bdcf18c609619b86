"""
Representative sky color of a webcam region

A region is cropped out of the frame, scaled onto a square surface, run
through the CSS-style filter chain (saturate, contrast, hue-rotate,
brightness), snapshotted as a lossy JPEG and reduced to its dominant color
with Pillow's median-cut quantizer.
"""
import io
import logging
import math
from typing import NamedTuple

from PIL import Image, ImageEnhance

from sunsetgrad.config import (
    FALLBACK_COLOR, PALETTE_SIZE, SAMPLE_STEP, SNAPSHOT_JPEG_QUALITY,
    WHITE_THRESHOLD, WORK_SIZE
)

log = logging.getLogger('sunsetgrad.sampler')


class DominantColorError(Exception):
    """Nothing left to quantize (the region is pure white)."""


class RGBColor(NamedTuple):
    r: int
    g: int
    b: int

    def css(self) -> str:
        return f'rgb({self.r},{self.g},{self.b})'

    def __str__(self):
        return self.css()


class ColorPair(NamedTuple):
    top: RGBColor
    bot: RGBColor


# ── Filter matrices (W3C Filter Effects, 3x3 plus offset column) ───────────

def _saturate_matrix(s):
    return (
        0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s, 0,
        0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s, 0,
        0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s, 0,
    )


def _contrast_matrix(c):
    intercept = 127.5 * (1 - c)
    return (
        c, 0, 0, intercept,
        0, c, 0, intercept,
        0, 0, c, intercept,
    )


def _hue_rotate_matrix(degrees):
    a = math.radians(degrees)
    cos, sin = math.cos(a), math.sin(a)
    return (
        0.213 + cos * 0.787 - sin * 0.213,
        0.715 - cos * 0.715 - sin * 0.715,
        0.072 - cos * 0.072 + sin * 0.928,
        0,
        0.213 - cos * 0.213 + sin * 0.143,
        0.715 + cos * 0.285 + sin * 0.140,
        0.072 - cos * 0.072 - sin * 0.283,
        0,
        0.213 - cos * 0.213 - sin * 0.787,
        0.715 - cos * 0.715 + sin * 0.715,
        0.072 + cos * 0.928 + sin * 0.072,
        0,
    )


def apply_filters(img: Image.Image, region) -> Image.Image:
    """Apply region's saturate, contrast, hue-rotate and brightness, in that order."""
    img = img.convert('RGB')
    if region.sat != 100:
        img = img.convert('RGB', _saturate_matrix(region.sat / 100))
    if region.con != 1:
        img = img.convert('RGB', _contrast_matrix(region.con))
    if region.hue % 360:
        img = img.convert('RGB', _hue_rotate_matrix(region.hue))
    if region.br != 1:
        img = ImageEnhance.Brightness(img).enhance(region.br)
    return img


def render_region(image: Image.Image, region, size=WORK_SIZE) -> Image.Image:
    """Crop region out of image, scale it to size x size and filter it."""
    box = (region.x, region.y, region.x + region.w, region.y + region.h)
    surface = image.crop(box).resize((size, size), Image.BILINEAR)
    return apply_filters(surface, region)


def _jpeg_snapshot(img: Image.Image, quality=SNAPSHOT_JPEG_QUALITY) -> Image.Image:
    buf = io.BytesIO()
    img.save(buf, format='JPEG', quality=quality)
    buf.seek(0)
    return Image.open(buf).convert('RGB')


def dominant_color(img: Image.Image, color_count=PALETTE_SIZE, step=SAMPLE_STEP) -> RGBColor:
    """
    Most populated median-cut palette entry of img.

    Every step-th pixel is considered; near-white pixels are skipped.

    Raises:
        DominantColorError: if no pixels are left after skipping white
    """
    data = img.convert('RGB').tobytes()
    pixels = []
    for i in range(0, len(data), 3 * step):
        r, g, b = data[i], data[i + 1], data[i + 2]
        if r > WHITE_THRESHOLD and g > WHITE_THRESHOLD and b > WHITE_THRESHOLD:
            continue
        pixels.append((r, g, b))

    if not pixels:
        raise DominantColorError('no non-white pixels to quantize')

    sample = Image.new('RGB', (len(pixels), 1))
    sample.putdata(pixels)
    quantized = sample.quantize(colors=color_count, method=Image.Quantize.MEDIANCUT)
    palette = quantized.getpalette()
    _, index = max(quantized.getcolors())
    return RGBColor(*palette[index * 3:index * 3 + 3])


def sample_region(image: Image.Image, region, size=WORK_SIZE, debug_path=None) -> RGBColor:
    """
    Dominant color of one region of a webcam frame.

    Never raises for degenerate input: a pure white region gives white.
    """
    surface = _jpeg_snapshot(render_region(image, region, size))

    if debug_path:
        surface.save(debug_path, format='JPEG')

    try:
        return dominant_color(surface)
    except DominantColorError:
        log.debug('Region is pure white, using fallback color')
        return RGBColor(*FALLBACK_COLOR)
