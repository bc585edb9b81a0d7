"""
Announced-prefix lookup.

Queries the prefixes-by-ASN endpoint and rewrites the ASN's cache file.
Expected payload::

    {"status": "ok", "status_message": "...",
     "data": {"ipv4_prefixes": [{"ip": "1.2.3.0", "cidr": 24}, ...]}}

Only ``data.ipv4_prefixes`` is used.
"""

import ipaddress
import logging

import requests

from .errors import FetchError

log = logging.getLogger(__name__)

USER_AGENT = "ros-asn-sync"


def parse_prefixes(payload, asn):
    """Turn a lookup response into ``ip/cidr`` strings, service order kept."""
    if not isinstance(payload, dict):
        raise FetchError(f"AS{asn}: response is not a JSON object")

    status = payload.get("status")
    if status is not None and status != "ok":
        message = payload.get("status_message") or "no status message"
        raise FetchError(f"AS{asn}: lookup service returned {status}: {message}")

    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("ipv4_prefixes"), list):
        raise FetchError(f"AS{asn}: response has no data.ipv4_prefixes list")

    prefixes = []
    for entry in data["ipv4_prefixes"]:
        try:
            ip = ipaddress.IPv4Address(entry["ip"])
            cidr = entry["cidr"]
        except (TypeError, KeyError, ValueError) as e:
            raise FetchError(f"AS{asn}: malformed prefix entry {entry!r}") from e
        # bool is an int subclass; JSON true is not a prefix length
        if isinstance(cidr, bool) or not isinstance(cidr, int) or not 0 <= cidr <= 32:
            raise FetchError(f"AS{asn}: malformed prefix length in {entry!r}")
        prefixes.append(f"{ip}/{cidr}")
    return prefixes


class PrefixFetcher:
    """Refreshes cache files from the lookup service."""

    def __init__(self, config, cache, session=None):
        self.config = config
        self.cache = cache
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def url(self, asn):
        return self.config.api_url.format(asn=asn)

    def fetch(self, asn):
        """GET the ASN's prefixes; raises FetchError on any failure."""
        url = self.url(asn)
        log.info(f"[FETCH] AS{asn}: GET {url}")
        try:
            resp = self.session.get(url, timeout=self.config.fetch_timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise FetchError(f"AS{asn}: request to {url} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"AS{asn}: invalid JSON from {url}: {e}") from e
        return parse_prefixes(payload, asn)

    def refresh(self, asn):
        """Fetch and atomically rewrite the cache file. Returns the prefixes written."""
        prefixes = self.fetch(asn)
        log.info(f"[FETCH] AS{asn}: {len(prefixes)} IPv4 prefixes")
        self.cache.store(asn, prefixes)
        return prefixes

    def close(self):
        self.session.close()
