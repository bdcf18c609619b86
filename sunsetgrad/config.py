"""
Configuration constants for the sunset gradient
"""
from pathlib import Path

# City definitions
DEFAULT_CITIES_SOURCE = 'cities.json'  # Local path or http(s) URL
CITIES_TIMEOUT = 30  # Seconds to wait for a remote city list

# Webcam proxy (adds permissive CORS headers, also hides the webcam hosts' quirks)
PROXY_URL = 'https://pure-crag-66869.herokuapp.com/'
WEBCAM_TIMEOUT = 30  # Seconds before a webcam request counts as a failure
WEBCAM_CHUNK_SIZE = 16 * 1024
MAX_FRAME_BYTES = 10 * 1024 * 1024  # Give up on streams that never finish a frame

# Refresh cadence
LIVE_INTERVAL = 12  # Seconds between refreshes while a city is live
WAITING_INTERVAL = 45  # Seconds between refreshes while no city has sunset

# Failure handling
BLACKLIST_THRESHOLD = 2  # Consecutive failures before a city is dropped for good

# Color sampling
WORK_SIZE = 300  # Side of the square surface a region is scaled onto
SNAPSHOT_JPEG_QUALITY = 50  # The filtered surface is re-encoded before analysis
PALETTE_SIZE = 5  # Colors in the median-cut palette
SAMPLE_STEP = 10  # Analyse every Nth pixel
WHITE_THRESHOLD = 250  # Pixels with every channel above this are ignored
FALLBACK_COLOR = (255, 255, 255)  # Used when a region is blown out to pure white

# Sunset window: sun elevation (degrees) where sunset starts, depression where dusk ends
SUNSET_START_ELEVATION = -0.3
DUSK_DEPRESSION = 6

# Web output
WEB_HOST = '0.0.0.0'
WEB_PORT = 8080
FULLSCREEN_ON_CLICK = True
CROSSFADE = True
GRADIENT_PNG_SIZE = (400, 600)  # Default width, height of /gradient.png

# Change notifications
NTFY_SERVER = 'https://ntfy.sh'
NTFY_TOPIC = ''  # Empty = notifications disabled

# Debugging
DEBUG_DIR = ''  # Directory for top/bot part images, empty = don't save

# Config file path (optional)
CONFIG_FILE = Path.home() / '.config' / 'sunsetgrad' / 'sunsetgrad.conf'


def load_config_file(path=None):
    """
    Load configuration from file if it exists.
    Returns dict of config values or empty dict if file doesn't exist.
    """
    path = Path(path) if path else CONFIG_FILE
    if not path.exists():
        return {}

    config = {}
    try:
        with open(path, 'r') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue

                if '=' in line:
                    key, value = line.split('=', 1)
                    key = key.strip()
                    value = value.strip()

                    # Convert to appropriate type
                    if value.lower() in ('true', 'false'):
                        config[key] = value.lower() == 'true'
                    elif value.isdigit():
                        config[key] = int(value)
                    else:
                        try:
                            config[key] = float(value)
                        except ValueError:
                            config[key] = value

        return config
    except OSError as e:
        print(f"Warning: Could not load config file {path}: {e}")
        return {}
