"""
Webcam frame fetching through the image proxy
"""
import asyncio
import io
import logging
import os
import re

import requests
from PIL import Image, UnidentifiedImageError

from sunsetgrad.config import (
    MAX_FRAME_BYTES, PROXY_URL, WEBCAM_CHUNK_SIZE, WEBCAM_TIMEOUT, WORK_SIZE
)
from sunsetgrad.sampler import ColorPair, sample_region

log = logging.getLogger('sunsetgrad.webcam')

JPEG_SOI = b'\xff\xd8'
CONTENT_LENGTH = re.compile(rb'content-length:[ \t]*(\d+)', re.IGNORECASE)


class FetchError(Exception):
    """The webcam frame could not be loaded."""


def _jpeg_end(buf, start):
    """
    Offset just past the end-of-image marker of the JPEG at start.

    Walks the marker segments so that a thumbnail embedded in an APPn
    segment (EXIF) is skipped as a whole. Returns None while more data
    is needed.
    """
    n = len(buf)
    pos = start + 2
    while True:
        while pos + 1 < n and buf[pos] == 0xFF and buf[pos + 1] == 0xFF:
            pos += 1
        if pos + 1 >= n:
            return None
        if buf[pos] != 0xFF:
            raise FetchError(f"Corrupt JPEG in stream at byte {pos}")

        marker = buf[pos + 1]
        if marker == 0xD9:
            return pos + 2
        if marker == 0x01 or 0xD0 <= marker <= 0xD7:
            pos += 2
            continue
        if pos + 3 >= n:
            return None
        pos += 2 + int.from_bytes(buf[pos + 2:pos + 4], 'big')

        if marker == 0xDA:
            # entropy-coded data, only stuffed 0xFF00 and restart markers inside
            while True:
                pos = buf.find(b'\xff', pos)
                if pos < 0 or pos + 1 >= n:
                    return None
                following = buf[pos + 1]
                if following == 0x00 or 0xD0 <= following <= 0xD7:
                    pos += 2
                elif following == 0xFF:
                    pos += 1
                else:
                    break


def _complete_frame(buf):
    start = buf.find(JPEG_SOI)
    if start < 0:
        return None

    # Content-Length of the multipart part the JPEG sits in
    lengths = CONTENT_LENGTH.findall(buf, 0, start)
    if lengths:
        end = start + int(lengths[-1])
    else:
        end = _jpeg_end(buf, start)
    if end is None or len(buf) < end:
        return None
    return buf[start:end]


def first_jpeg_frame(chunks, max_bytes=MAX_FRAME_BYTES):
    """
    Pull the first complete JPEG out of an MJPEG byte stream.

    The frame is bounded by its part's Content-Length header when the
    server sends one, otherwise by the JPEG's own end-of-image marker.
    Stops consuming chunks as soon as the frame is complete.
    """
    buf = b''
    for chunk in chunks:
        if not chunk:
            continue
        buf += chunk
        frame = _complete_frame(buf)
        if frame is not None:
            return frame
        if len(buf) > max_bytes:
            raise FetchError(f"No complete frame within {max_bytes} bytes")
    raise FetchError('Stream ended before a full frame arrived')


class WebcamFetcher:
    """
    Loads one frame per city and extracts its top and bottom sky colors.

    The sampler is pluggable so tests can swap in a fake.
    """

    def __init__(self, proxy_url=PROXY_URL, session=None, timeout=WEBCAM_TIMEOUT,
                 sampler=sample_region, work_size=WORK_SIZE, debug_dir=None):
        self.proxy_url = proxy_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.sampler = sampler
        self.work_size = work_size
        self.debug_dir = debug_dir

    def frame_url(self, city):
        return self.proxy_url + city.url

    def fetch_frame(self, url) -> Image.Image:
        """
        Fetch a single frame from url.

        The response is opened as a stream and always closed on the way out,
        so MJPEG sources stop sending once the first frame has been read.

        Raises:
            FetchError: on transport errors, HTTP errors or undecodable data
        """
        log.debug(f"Loading webcam image from {url}")
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                if response.status_code >= 400:
                    raise FetchError(
                        f"Unable to load webcam image, HTTP status {response.status_code}")
                content_type = response.headers.get('Content-Type', '')
                chunks = response.iter_content(chunk_size=WEBCAM_CHUNK_SIZE)
                if content_type.startswith('multipart/'):
                    data = first_jpeg_frame(chunks)
                else:
                    data = b''
                    for chunk in chunks:
                        data += chunk
                        if len(data) > MAX_FRAME_BYTES:
                            raise FetchError(f"Webcam image larger than {MAX_FRAME_BYTES} bytes")
        except requests.RequestException as e:
            raise FetchError(f"Unable to load webcam image: {e}") from e

        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise FetchError(f"Unable to decode webcam image: {e}") from e
        return image.convert('RGB')

    def _debug_path(self, part):
        if not self.debug_dir:
            return None
        return os.path.join(self.debug_dir, f'{part}.jpg')

    async def fetch_colors(self, city) -> ColorPair:
        """
        Fetch city's webcam frame and sample both regions concurrently.

        Raises:
            FetchError: if the frame could not be loaded
        """
        frame = await asyncio.to_thread(self.fetch_frame, self.frame_url(city))

        top, bot = await asyncio.gather(
            asyncio.to_thread(self.sampler, frame, city.top, self.work_size, self._debug_path('top')),
            asyncio.to_thread(self.sampler, frame, city.bot, self.work_size, self._debug_path('bot')),
        )
        log.debug(f"Got colors of {city.name}: top {top}, bot {bot}")
        return ColorPair(top, bot)
