"""
One reconciliation pass over every configured ASN.

Per ASN: check cache freshness, refresh if stale, load the desired
prefixes, read the device's tagged entries, diff, remove, then add.
A failure at any step skips that ASN and the pass moves on.
"""

import logging
from dataclasses import dataclass, field

from .cache import CacheStore
from .device import DeviceSync
from .errors import SyncError
from .fetcher import PrefixFetcher
from .reconcile import diff

log = logging.getLogger(__name__)


@dataclass
class AsnResult:
    asn: str
    removed: int = 0
    added: int = 0
    refreshed: bool = False
    error: str = None

    @property
    def ok(self):
        return self.error is None


@dataclass
class RunSummary:
    results: list = field(default_factory=list)

    @property
    def synchronized(self):
        return [r.asn for r in self.results if r.ok]

    @property
    def failed(self):
        return [r.asn for r in self.results if not r.ok]


class Synchronizer:
    """Wires CacheStore, PrefixFetcher and DeviceSync together for one run."""

    def __init__(self, config, cache=None, fetcher=None, device_factory=None):
        self.config = config
        self.cache = cache or CacheStore(config)
        self.fetcher = fetcher or PrefixFetcher(config, self.cache)
        self.device_factory = device_factory or DeviceSync

    def sync_asn(self, asn):
        """Reconcile one ASN. SyncError subclasses propagate to the caller."""
        result = AsnResult(asn)
        list_name = self.config.address_list

        if not self.cache.is_fresh(asn, self.config.cache_ttl):
            self.fetcher.refresh(asn)
            result.refreshed = True
        desired = self.cache.load(asn)

        with self.device_factory(self.config) as device:
            current = device.list_tagged(list_name, asn)
            changes = diff(current, desired)
            log.info(
                f"AS{asn}: {len(changes.to_remove)} to remove, "
                f"{len(changes.to_add)} to add"
            )
            # removals finish before any addition starts
            result.removed = device.apply_removals(changes.to_remove, list_name, asn)
            result.added = device.apply_additions(changes.to_add, list_name, asn)
        return result

    def run(self):
        """Process every ASN in order; never stops early on an ASN failure."""
        summary = RunSummary()
        for asn in self.config.asns:
            log.info(f"Start for AS{asn}")
            try:
                result = self.sync_asn(asn)
            except SyncError as e:
                log.error(f"[FAIL] AS{asn}: {e}")
                summary.results.append(AsnResult(asn, error=str(e)))
                continue
            log.info(
                f"[OK] AS{asn}: {result.removed} removed, {result.added} added"
                + (" (cache refreshed)" if result.refreshed else "")
            )
            summary.results.append(result)

        log.info(
            f"{len(summary.synchronized)} synchronized, {len(summary.failed)} failed"
        )
        if summary.failed:
            log.info(f"  Failed ASNs: {summary.failed}")
        return summary

    def close(self):
        self.fetcher.close()
