"""
Main entry point for the sunset gradient
"""
import argparse
import asyncio
import functools
import logging
import os
import sys
import threading

from sunsetgrad import __version__
from sunsetgrad.config import (
    CROSSFADE, DEBUG_DIR, DEFAULT_CITIES_SOURCE, FULLSCREEN_ON_CLICK,
    LIVE_INTERVAL, NTFY_SERVER, NTFY_TOPIC, PROXY_URL, WAITING_INTERVAL,
    WEB_HOST, WEB_PORT, load_config_file
)
from sunsetgrad.gradient import GradientOutput
from sunsetgrad.ntfy import notify_city_change
from sunsetgrad.scheduler import ERROR, GradientScheduler
from sunsetgrad.webcam import WebcamFetcher

log = logging.getLogger('sunsetgrad')


def build_parser(file_config):
    parser = argparse.ArgumentParser(
        prog='sunsetgrad',
        description='Sky gradient sampled from a webcam where the sun is setting'
    )

    parser.add_argument('--cities',
                        default=file_config.get('CITIES', DEFAULT_CITIES_SOURCE),
                        help='City definitions, JSON file or URL (default: cities.json)')
    parser.add_argument('--proxy-url',
                        default=file_config.get('PROXY_URL', PROXY_URL),
                        help='Proxy prefixed to every webcam URL')
    parser.add_argument('--live-interval', type=float,
                        default=file_config.get('LIVE_INTERVAL', LIVE_INTERVAL),
                        help='Seconds between refreshes while live (default: 12)')
    parser.add_argument('--waiting-interval', type=float,
                        default=file_config.get('WAITING_INTERVAL', WAITING_INTERVAL),
                        help='Seconds between refreshes while waiting (default: 45)')
    parser.add_argument('--debug', action='store_true',
                        default=file_config.get('DEBUG', False),
                        help='Enable debug logging')
    parser.add_argument('--debug-dir',
                        default=file_config.get('DEBUG_DIR', DEBUG_DIR),
                        help='Save the sampled top/bot regions into this directory')
    parser.add_argument('--no-crossfade', action='store_true',
                        default=not file_config.get('CROSSFADE', CROSSFADE),
                        help='Reuse a single output layer')
    parser.add_argument('--no-fullscreen', action='store_true',
                        default=not file_config.get('FULLSCREEN_ON_CLICK', FULLSCREEN_ON_CLICK),
                        help='Do not toggle fullscreen when the page is clicked')
    parser.add_argument('--host',
                        default=file_config.get('WEB_HOST', WEB_HOST),
                        help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int,
                        default=file_config.get('WEB_PORT', WEB_PORT),
                        help='Port to listen on (default: 8080)')
    parser.add_argument('--no-web', action='store_true',
                        help='Run the refresh loop only, without the web page')
    parser.add_argument('--ntfy-topic',
                        default=file_config.get('NTFY_TOPIC', NTFY_TOPIC),
                        help='ntfy.sh topic for city change notifications')
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}')
    return parser


def main(argv=None):
    """Main entry point"""

    file_config = load_config_file()
    args = build_parser(file_config).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if args.debug_dir:
        os.makedirs(args.debug_dir, exist_ok=True)

    on_city_change = None
    if args.ntfy_topic:
        server = file_config.get('NTFY_SERVER', NTFY_SERVER)
        on_city_change = functools.partial(notify_city_change, server=server, topic=args.ntfy_topic)

    output = GradientOutput(crossfade=not args.no_crossfade)
    fetcher = WebcamFetcher(proxy_url=args.proxy_url, debug_dir=args.debug_dir or None)
    try:
        scheduler = GradientScheduler(
            fetcher, output,
            cities_source=args.cities,
            on_city_change=on_city_change,
            live_interval=args.live_interval,
            waiting_interval=args.waiting_interval,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    log.info(f"Sunset gradient v{__version__} starting")
    log.info(f"Cities   : {args.cities}")
    log.info(f"Proxy    : {args.proxy_url}")
    log.info(f"Interval : {args.live_interval:g}s live  |  {args.waiting_interval:g}s waiting")

    if args.no_web:
        try:
            asyncio.run(scheduler.run())
        except KeyboardInterrupt:
            log.info('Stopped')
        return 1 if scheduler.state == ERROR else 0

    from sunsetgrad.web import app
    app.config.update(
        SCHEDULER=scheduler,
        REFRESH_SECONDS=max(1, round(args.live_interval)),
        FULLSCREEN_ON_CLICK=not args.no_fullscreen,
    )

    loop_thread = threading.Thread(target=asyncio.run, args=(scheduler.run(),),
                                   name='gradient-refresh', daemon=True)
    loop_thread.start()

    log.info(f"Serving on http://{args.host}:{args.port}/")
    app.run(host=args.host, port=args.port, debug=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
