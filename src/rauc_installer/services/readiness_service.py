# -*- coding: utf-8 -*-

"""
Waits for an HTTP endpoint to answer before an installation is triggered.
"""

import logging
import time
from typing import Optional

import httpx

from rauc_installer.models.exceptions import ReadinessTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0  # seconds


def wait_until_ready(
    url: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: Optional[float] = None,
    client: Optional[httpx.Client] = None,
) -> None:
    """
    Polls ``url`` every ``interval`` seconds until it answers.

    Any HTTP response counts as reachable, whatever its status code; only
    transport errors (refused connection, timeout, DNS) keep the loop going.

    Args:
        url (str): The endpoint to poll.
        interval (float): Seconds between attempts.
        timeout (float, optional): Give up after this many seconds.
        client (httpx.Client, optional): Client to reuse, mostly for tests.

    Raises:
        ReadinessTimeoutError: If ``timeout`` elapses before the endpoint answers.
    """
    owns_client = client is None
    client = client or httpx.Client(timeout=10.0, follow_redirects=True)
    deadline = time.monotonic() + timeout if timeout is not None else None
    attempt = 0

    try:
        while True:
            attempt += 1
            try:
                response = client.get(url)
                logger.info(f"'{url}' respondeu com status {response.status_code} após {attempt} tentativa(s).")
                return
            except httpx.TransportError as e:
                logger.debug(f"'{url}' ainda não está disponível ({e.__class__.__name__}).")

            if deadline is not None and time.monotonic() + interval > deadline:
                raise ReadinessTimeoutError(url, timeout)
            time.sleep(interval)
    finally:
        if owns_client:
            client.close()
