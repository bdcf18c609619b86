#!/usr/bin/env python3
"""
Web surface for the sunset gradient
Paints the current gradient full-window and exposes it as JSON and PNG
"""
import html
import io

from flask import Flask, Response, jsonify, request, send_file

from sunsetgrad.config import (
    FULLSCREEN_ON_CLICK, GRADIENT_PNG_SIZE, LIVE_INTERVAL
)

app = Flask(__name__)
app.config.update(
    SCHEDULER=None,
    REFRESH_SECONDS=LIVE_INTERVAL,
    FULLSCREEN_ON_CLICK=FULLSCREEN_ON_CLICK,
)

MAX_PNG_SIDE = 4000

_FULLSCREEN_JS = """
    <script>
        document.body.addEventListener('click', function() {
            if (document.fullscreenElement) {
                document.exitFullscreen();
            } else if (document.documentElement.requestFullscreen) {
                document.documentElement.requestFullscreen();
            }
        });
    </script>"""


def _scheduler():
    scheduler = app.config['SCHEDULER']
    if scheduler is None:
        raise RuntimeError('No scheduler attached to the web app')
    return scheduler


@app.route('/api/gradient')
def gradient_data():
    """API endpoint to serve the current gradient as JSON"""
    return jsonify(_scheduler().status())


@app.route('/gradient.png')
def gradient_image():
    """Current gradient rendered as a PNG"""
    width = request.args.get('w', GRADIENT_PNG_SIZE[0], type=int)
    height = request.args.get('h', GRADIENT_PNG_SIZE[1], type=int)
    if not (0 < width <= MAX_PNG_SIDE and 0 < height <= MAX_PNG_SIDE):
        return Response('Invalid size', status=400)

    img = _scheduler().output.render(width, height)
    if img is None:
        return Response('No gradient yet', status=404)

    buf = io.BytesIO()
    img.save(buf, format='PNG')
    buf.seek(0)
    return send_file(buf, mimetype='image/png')


@app.route('/')
def index():
    """Full-window gradient page"""
    status = _scheduler().status()
    background = status['css'] or '#000'
    caption = html.escape(status['city'] or '')
    refresh = app.config['REFRESH_SECONDS']
    script = _FULLSCREEN_JS if app.config['FULLSCREEN_ON_CLICK'] else ''

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Sunset gradient</title>
    <meta http-equiv="refresh" content="{refresh}" />
    <style>
        html, body {{ height: 100%; margin: 0; }}
        body.sunset-gradient {{ background: {background}; transition: background 2s ease;
                                font-family: sans-serif; color: rgba(255,255,255,0.7); }}
        body.loading, body.error {{ background: #000; }}
        .city {{ position: fixed; bottom: 12px; right: 16px; font-size: 14px; }}
    </style>
</head>
<body class="sunset-gradient {status['state']}">
    <div class="city">{caption}</div>{script}
</body>
</html>
"""
