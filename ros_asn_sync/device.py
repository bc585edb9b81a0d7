"""
RouterOS API session for one ASN's address-list entries.

Every query is scoped by list name and the ASN tag comment, so entries
belonging to other lists or other ASNs are never seen, let alone changed.
The session is a context manager and always disconnects on exit.
"""

import functools
import logging
import ssl

import librouteros
from librouteros.exceptions import LibRouterosError

from .config import asn_tag
from .errors import DeviceConnectionError, ProtocolError

log = logging.getLogger(__name__)

ADDRESS_LIST = "/ip/firewall/address-list"


def from_device(address):
    """RouterOS prints host entries without /32; the cache always has a length."""
    address = str(address)
    return address if "/" in address else f"{address}/32"


def to_device(prefix):
    if prefix.endswith("/32"):
        return prefix[: -len("/32")]
    return prefix


class DeviceSync:
    """Disconnected -> connected -> (synchronized | partially failed) -> disconnected."""

    def __init__(self, config, connect=librouteros.connect):
        self.config = config
        self._connect = connect
        self.api = None

    # -----------------------------------------------------------------------
    # session
    # -----------------------------------------------------------------------

    def _ssl_wrapper(self):
        ctx = ssl.create_default_context()
        if self.config.insecure:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        return functools.partial(ctx.wrap_socket, server_hostname=self.config.router)

    def connect(self):
        kwargs = {"port": self.config.api_port}
        if self.config.ssl:
            kwargs["ssl_wrapper"] = self._ssl_wrapper()
        if self.config.device_timeout is not None:
            kwargs["timeout"] = self.config.device_timeout

        target = f"{self.config.router}:{kwargs['port']}"
        log.info(f"[ROS] connecting to {target}{' (ssl)' if self.config.ssl else ''}")
        try:
            self.api = self._connect(
                host=self.config.router,
                username=self.config.user,
                password=self.config.password,
                **kwargs,
            )
        except (LibRouterosError, OSError) as e:
            raise DeviceConnectionError(f"cannot connect to {target}: {e}") from e
        return self

    def close(self):
        if self.api is None:
            return
        try:
            self.api.close()
        except (LibRouterosError, OSError) as e:
            log.warning(f"[ROS] error while closing connection: {e}")
        finally:
            self.api = None
            log.info("[ROS] disconnected")

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _run(self, command, *words):
        if self.api is None:
            raise ProtocolError(f"{command}: not connected")
        try:
            # rawCmd is lazy; drain it so errors surface here
            return tuple(self.api.rawCmd(command, *words))
        except (LibRouterosError, OSError, UnicodeError) as e:
            raise ProtocolError(f"{command} failed: {e}") from e

    # -----------------------------------------------------------------------
    # address-list operations
    # -----------------------------------------------------------------------

    def list_tagged(self, list_name, asn):
        """Addresses in ``list_name`` carrying this ASN's tag, device order."""
        replies = self._run(
            f"{ADDRESS_LIST}/print",
            f"?list={list_name}",
            f"?comment={asn_tag(asn)}",
            "=.proplist=address",
        )
        addresses = [from_device(r["address"]) for r in replies if "address" in r]
        log.info(f"[ROS] AS{asn}: {len(addresses)} tagged entries in {list_name}")
        return addresses

    def find_id(self, list_name, asn, address):
        replies = self._run(
            f"{ADDRESS_LIST}/print",
            f"?list={list_name}",
            f"?comment={asn_tag(asn)}",
            f"?address={to_device(address)}",
            "=.proplist=.id",
        )
        for r in replies:
            if ".id" in r:
                return r[".id"]
        return None

    def apply_removals(self, to_remove, list_name, asn):
        """Remove each address by id; stops at the first device error."""
        removed = 0
        for address in to_remove:
            entry_id = self.find_id(list_name, asn, address)
            if entry_id is None:
                log.warning(f"[ROS] AS{asn}: {address} already gone from {list_name}")
                continue
            self._run(f"{ADDRESS_LIST}/remove", f"=.id={entry_id}")
            removed += 1
            log.info(f"[ROS] AS{asn}: removed {address} from {list_name}")
        return removed

    def apply_additions(self, to_add, list_name, asn):
        """Add each address tagged with the ASN; stops at the first device error."""
        added = 0
        for address in to_add:
            self._run(
                f"{ADDRESS_LIST}/add",
                f"=list={list_name}",
                f"=address={to_device(address)}",
                f"=comment={asn_tag(asn)}",
            )
            added += 1
            log.info(f"[ROS] AS{asn}: added {address} to {list_name}")
        return added
