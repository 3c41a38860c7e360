import logging

import requests

from .constants import APP_NAME, CONNECT_TIMEOUT, PROBE_URL, READ_TIMEOUT

logger = logging.getLogger(APP_NAME)


def is_reachable(
    url: str = PROBE_URL,
    connect_timeout: float = CONNECT_TIMEOUT,
    read_timeout: float = READ_TIMEOUT,
) -> bool:
    """Performs a single HEAD request to check internet connectivity.

    The check is advisory: it never raises and never retries. Redirects are
    followed, and only a final `200 OK` counts as reachable.

    Args:
        url (str, optional): The well-known host to probe.
        connect_timeout (float, optional): Seconds allowed to establish the connection.
        read_timeout (float, optional): Seconds allowed to wait for the response.

    Returns:
        bool: True if the host answered with 200 OK, False otherwise.
    """
    try:
        response = requests.head(
            url, timeout=(connect_timeout, read_timeout), allow_redirects=True
        )
    except Exception as e:
        logger.warning(f"Failed to check internet connectivity: {e}")
        return False

    if response.status_code != requests.codes.ok:
        logger.warning(
            f"Connectivity check against {url} returned HTTP {response.status_code}"
        )
        return False
    return True
