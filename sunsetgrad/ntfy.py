"""
ntfy.sh notification sender
Posts a push notification whenever the sunset city changes
"""
import logging

import requests

from sunsetgrad.config import NTFY_SERVER, NTFY_TOPIC

log = logging.getLogger('sunsetgrad.ntfy')


def send_notification(title, message, server=NTFY_SERVER, topic=NTFY_TOPIC,
                      priority='low', tags=None, session=None):
    """
    Send notification via ntfy.sh

    Args:
        title: Notification title
        message: Notification body
        priority: 'min', 'low', 'default', 'high', 'urgent'
        tags: List of emoji tags (e.g., ['sunrise_over_mountains'])

    Returns:
        True if sent successfully, False otherwise
    """
    if not topic:
        log.debug('NTFY_TOPIC not configured, skipping notification')
        return False

    url = f"{server}/{topic}"
    headers = {}

    # HTTP headers are latin-1; smuggle UTF-8 through, strip what can't be
    try:
        headers["X-Title"] = title.encode('utf-8').decode('latin-1')
    except (UnicodeEncodeError, UnicodeDecodeError):
        headers["X-Title"] = title.encode('ascii', 'ignore').decode('ascii')

    headers["X-Priority"] = priority
    if tags:
        headers["X-Tags"] = ",".join(tags)

    http = session or requests
    try:
        response = http.post(url, data=message.encode('utf-8'), headers=headers, timeout=5)
        response.raise_for_status()
        log.debug(f"Notification sent: {title}")
        return True
    except requests.RequestException as e:
        log.warning(f"Failed to send notification: {e}")
        return False


def notify_city_change(city, server=NTFY_SERVER, topic=NTFY_TOPIC, session=None):
    """Announce the new sunset city, or that there is none."""
    if city is None:
        return send_notification('Waiting for the next sunset',
                                 'No webcam city is having its sunset right now.',
                                 server=server, topic=topic, tags=['crescent_moon'],
                                 session=session)
    return send_notification(f'Sunset now in {city.name}',
                             f'Showing the sky over {city.name} ({city.lat:.2f}, {city.lon:.2f}).',
                             server=server, topic=topic, tags=['city_sunset'],
                             session=session)
