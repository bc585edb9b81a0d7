"""
Per-ASN prefix cache on local disk.

One file per ASN, ``{cache_path}/{asn}.asn``, holding one ``a.b.c.d/n``
prefix per line in the order the lookup service returned them. Freshness
comes from the file's modification time, never from its content.
"""

import logging
import os
import tempfile
import time

from .errors import CacheIOError

log = logging.getLogger(__name__)

CACHE_FILE_MODE = 0o644


class CacheStore:
    """Reads, writes and ages the per-ASN cache files."""

    def __init__(self, config, clock=time.time):
        self.config = config
        self.clock = clock

    def path(self, asn):
        return self.config.cache_file(asn)

    def ensure_dir(self):
        """create the cache directory if it does not exist yet"""
        cache_dir = self.config.cache_path
        if os.path.isdir(cache_dir):
            return
        log.info(f"[CACHE] creating directory {cache_dir}")
        try:
            os.makedirs(cache_dir, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"cannot create cache directory {cache_dir}: {e}") from e

    def is_fresh(self, asn, ttl=None):
        """True when the cache file exists and is at most ``ttl`` seconds old."""
        ttl = self.config.cache_ttl if ttl is None else ttl
        path = self.path(asn)
        try:
            mtime = os.path.getmtime(path)
        except FileNotFoundError:
            log.info(f"[CACHE] AS{asn}: no cache file at {path}")
            return False
        except OSError as e:
            log.warning(f"[CACHE] AS{asn}: cannot stat {path}: {e}")
            return False

        age = self.clock() - mtime
        if age > ttl:
            log.info(f"[CACHE] AS{asn}: {int(age)}s old, ttl {ttl}s, needs refresh")
            return False
        log.info(f"[CACHE] AS{asn}: {int(age)}s old, ttl {ttl}s, fresh")
        return True

    def load(self, asn):
        """Return the cached prefixes in file order, duplicates included."""
        path = self.path(asn)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise CacheIOError(f"cannot read cache for AS{asn}: {e}") from e

    def store(self, asn, prefixes):
        """Atomically replace the cache file for ``asn``.

        The prefixes go to a temporary file in the cache directory which is
        then renamed over the target, so readers see either the old file or
        the complete new one.
        """
        path = self.path(asn)
        cache_dir = os.path.dirname(path) or "."
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="\n",
                dir=cache_dir,
                prefix=f".{asn}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                for prefix in prefixes:
                    f.write(prefix + "\n")
                f.flush()
                os.fsync(f.fileno())
            # NamedTemporaryFile is created 0600
            os.chmod(tmp_path, CACHE_FILE_MODE)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise CacheIOError(f"cannot write cache for AS{asn}: {e}") from e
        log.info(f"[CACHE] AS{asn}: wrote {len(prefixes)} prefixes -> {path}")
