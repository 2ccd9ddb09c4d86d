"""HTTP client for the external carrier tracking API"""
import logging

import requests
from django.conf import settings

from gold360.core.exceptions import CarrierError

logger = logging.getLogger('gold360.shipping')


def fetch_tracking(tracking_number, carrier_name=None):
    """
    Fetch live tracking data for a shipment from the carrier API.

    Raises CarrierError when the API is not configured, unreachable,
    answers with a non-2xx status or returns something other than JSON.
    """
    base_url = settings.CARRIER_TRACKING_URL
    if not base_url:
        raise CarrierError('Carrier tracking API is not configured')

    headers = {'Accept': 'application/json'}
    if settings.CARRIER_API_KEY:
        headers['Authorization'] = f"Bearer {settings.CARRIER_API_KEY}"
    params = {'carrier': carrier_name} if carrier_name else None
    url = f"{base_url.rstrip('/')}/{tracking_number}"

    try:
        response = requests.get(url, headers=headers, params=params, timeout=settings.CARRIER_TIMEOUT)
    except requests.RequestException as e:
        logger.warning(f"Carrier tracking request for {tracking_number} failed: {e}")
        raise CarrierError(f"Carrier API request failed: {e}")

    if not response.ok:
        logger.warning(f"Carrier tracking for {tracking_number} returned HTTP {response.status_code}")
        raise CarrierError(f"Carrier API returned HTTP {response.status_code}", status_code=response.status_code)

    try:
        return response.json()
    except ValueError:
        raise CarrierError('Carrier API returned an invalid response')
