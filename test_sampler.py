#!/usr/bin/env python3
"""
Test script for region color sampling.
"""

import os
import sys
import tempfile

from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sunsetgrad.sampler import (
    DominantColorError, RGBColor, apply_filters, dominant_color, render_region, sample_region
)
from conftest import make_region


def _close(color, expected, tolerance):
    return all(abs(a - b) <= tolerance for a, b in zip(color, expected))


def _pixel(img):
    return img.getpixel((img.width // 2, img.height // 2))


def test_pure_white_gives_white():
    """A blown-out white region comes back as exactly (255, 255, 255)"""
    print("Testing pure white region...")
    frame = Image.new('RGB', (64, 48), (255, 255, 255))
    for region in (make_region(w=64, h=48), make_region(w=64, h=48, sat=150, con=1.3, hue=40)):
        color = sample_region(frame, region, size=60)
        assert color == RGBColor(255, 255, 255), f"Expected white, got {color}"
    print("✓ pure white tests passed")


def test_dominant_color_raises_on_white():
    try:
        dominant_color(Image.new('RGB', (20, 20), (255, 255, 255)))
        assert False, "Expected DominantColorError"
    except DominantColorError:
        pass


def test_solid_region():
    """A solid region with identity filters keeps its color"""
    frame = Image.new('RGB', (80, 60), (200, 80, 40))
    color = sample_region(frame, make_region(w=80, h=60), size=60)
    assert _close(color, (200, 80, 40), 8), f"Got {color}"


def test_crop_uses_region_rectangle():
    """Only the requested rectangle is sampled"""
    frame = Image.new('RGB', (100, 50), (20, 40, 200))
    frame.paste((250, 120, 0), (50, 0, 100, 50))

    left = sample_region(frame, make_region(x=0, y=0, w=50, h=50), size=60)
    right = sample_region(frame, make_region(x=50, y=0, w=50, h=50), size=60)
    assert _close(left, (20, 40, 200), 8), f"Left half should be blue, got {left}"
    assert _close(right, (250, 120, 0), 8), f"Right half should be orange, got {right}"


def test_majority_color_wins():
    """The most populated palette entry is the dominant color"""
    img = Image.new('RGB', (100, 100), (10, 20, 200))
    img.paste((250, 120, 0), (0, 70, 100, 100))
    color = dominant_color(img)
    assert _close(color, (10, 20, 200), 3), f"Expected blue, got {color}"


def test_near_white_pixels_ignored():
    """Mostly white sky with some color still yields the color"""
    img = Image.new('RGB', (100, 100), (255, 255, 255))
    img.paste((90, 60, 160), (0, 80, 100, 100))
    color = dominant_color(img)
    assert _close(color, (90, 60, 160), 3), f"Got {color}"


def test_filters():
    """Filter chain follows the CSS filter definitions"""
    print("Testing filters...")
    red = Image.new('RGB', (4, 4), (255, 0, 0))
    rotated = _pixel(apply_filters(red, make_region(hue=180)))
    assert _close(rotated, (0, 109, 109), 1), f"hue-rotate(180deg) of red: {rotated}"

    color = Image.new('RGB', (4, 4), (200, 100, 50))
    gray = _pixel(apply_filters(color, make_region(sat=0)))
    assert max(gray) - min(gray) <= 1, f"saturate(0%) should be gray, got {gray}"

    flat = _pixel(apply_filters(color, make_region(con=0)))
    assert _close(flat, (128, 128, 128), 1), f"contrast(0) should be mid gray, got {flat}"

    dim = _pixel(apply_filters(color, make_region(br=0.5)))
    assert _close(dim, (100, 50, 25), 1), f"brightness(0.5) got {dim}"

    same = _pixel(apply_filters(color, make_region()))
    assert same == (200, 100, 50), "Identity filters leave pixels alone"
    print("✓ filter tests passed")


def test_render_region_size():
    frame = Image.new('RGB', (640, 480), (30, 30, 30))
    surface = render_region(frame, make_region(x=10, y=10, w=200, h=40), size=120)
    assert surface.size == (120, 120)


def test_debug_image_written():
    """debug_path receives the filtered region"""
    frame = Image.new('RGB', (40, 40), (120, 60, 30))
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, 'top.jpg')
        sample_region(frame, make_region(w=40, h=40), size=50, debug_path=path)
        assert os.path.exists(path)
        with Image.open(path) as saved:
            assert saved.size == (50, 50)


def test_css():
    assert RGBColor(10, 20, 30).css() == 'rgb(10,20,30)'
    assert str(RGBColor(1, 2, 3)) == 'rgb(1,2,3)'


def run_all_tests():
    """Run all test functions"""
    print("=" * 50)
    print("Running Color Sampling Tests")
    print("=" * 50)

    try:
        test_pure_white_gives_white()
        test_dominant_color_raises_on_white()
        test_solid_region()
        test_crop_uses_region_rectangle()
        test_majority_color_wins()
        test_near_white_pixels_ignored()
        test_filters()
        test_render_region_size()
        test_debug_image_written()
        test_css()
        print("✓ All tests passed successfully!")
        return 0
    except AssertionError as e:
        print(f"\n✗ Test failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(run_all_tests())
