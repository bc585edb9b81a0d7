"""
Run configuration.

A single Config value is built by the CLI and handed to every component;
nothing reads options from module globals.
"""

import os
from dataclasses import dataclass

import yaml

from .errors import ConfigError

DEFAULT_PORT = 8728
DEFAULT_SSL_PORT = 8729
DEFAULT_CACHE_TTL = 86400
DEFAULT_CACHE_PATH = "./tmp"
DEFAULT_API_URL = "https://api.bgpview.io/asn/{asn}/prefixes"
DEFAULT_FETCH_TIMEOUT = 5.0

PASSWORD_ENV = "ROUTEROS_PASSWORD"


# ---------------------------------------------------------------------------
# ASN helpers
# ---------------------------------------------------------------------------


ASN_MIN = 1
ASN_MAX = 4294967295


def normalize_asn(raw):
    """'AS13335', 'as13335' and ' 13335 ' all become '13335'."""
    asn = str(raw).strip()
    if asn[:2].upper() == "AS":
        asn = asn[2:]
    if not asn.isdigit():
        raise ConfigError(f"invalid ASN: {raw!r}")
    if not ASN_MIN <= int(asn) <= ASN_MAX:
        raise ConfigError(f"ASN out of range: {raw!r}")
    return str(int(asn))


def parse_asn_list(value):
    """Split a comma-separated ASN list (or a YAML list), keeping first-seen order."""
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")

    asns = []
    for item in items:
        if not str(item).strip():
            continue
        asn = normalize_asn(item)
        if asn not in asns:
            asns.append(asn)
    if not asns:
        raise ConfigError("at least one ASN is required")
    return asns


def asn_tag(asn):
    """Comment that marks address-list entries owned by this ASN."""
    return f"ASN{asn}"


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Config:
    router: str
    user: str
    password: str
    address_list: str
    asns: tuple
    port: int = None
    ssl: bool = False
    insecure: bool = False
    verbose: bool = False
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_path: str = DEFAULT_CACHE_PATH
    api_url: str = DEFAULT_API_URL
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    device_timeout: float = None

    @property
    def api_port(self):
        if self.port:
            return self.port
        return DEFAULT_SSL_PORT if self.ssl else DEFAULT_PORT

    def cache_file(self, asn):
        return os.path.join(self.cache_path, f"{asn}.asn")


def load_yaml_config(path):
    """Read a YAML mapping of option name -> value. Keys may use '-' or '_'."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return {str(k).replace("-", "_").lower(): v for k, v in data.items()}


def _pick(options, file_options, key, default=None):
    value = options.get(key)
    if value is None:
        value = file_options.get(key)
    return default if value is None else value


def _flag(value, key):
    """YAML gives real booleans for yes/no; quoted strings are parsed here."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "on", "1"):
        return True
    if text in ("false", "no", "off", "0"):
        return False
    raise ConfigError(f"{key} must be true or false, got {value!r}")


def _number(value, key, kind):
    try:
        number = kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number, got {value!r}") from e
    if number < 0:
        raise ConfigError(f"{key} must not be negative")
    return number


def build_config(options, file_options=None, environ=None):
    """Merge command-line options over YAML options into a Config.

    ``options`` maps option names to values, None meaning "not given".
    """
    file_options = file_options or {}
    environ = os.environ if environ is None else environ

    missing = [
        name
        for name in ("router", "user", "list", "asn")
        if _pick(options, file_options, name) in (None, "")
    ]
    password = _pick(options, file_options, "password") or environ.get(PASSWORD_ENV)
    if not password:
        missing.append(f"password (or ${PASSWORD_ENV})")
    if missing:
        raise ConfigError(f"missing required options: {', '.join(missing)}")

    port = _pick(options, file_options, "port")
    cache_ttl = _number(
        _pick(options, file_options, "cachettl", DEFAULT_CACHE_TTL), "cachettl", int
    )
    device_timeout = _pick(options, file_options, "device_timeout")

    return Config(
        router=str(_pick(options, file_options, "router")),
        user=str(_pick(options, file_options, "user")),
        password=str(password),
        address_list=str(_pick(options, file_options, "list")),
        asns=tuple(parse_asn_list(_pick(options, file_options, "asn"))),
        port=_number(port, "port", int) if port is not None else None,
        ssl=_flag(_pick(options, file_options, "ssl", False), "ssl"),
        insecure=_flag(_pick(options, file_options, "insecure", False), "insecure"),
        verbose=_flag(_pick(options, file_options, "verbose", False), "verbose"),
        # 0 keeps the historical meaning of "use the default TTL"
        cache_ttl=cache_ttl or DEFAULT_CACHE_TTL,
        cache_path=str(_pick(options, file_options, "cachepath", DEFAULT_CACHE_PATH)),
        api_url=str(_pick(options, file_options, "api_url", DEFAULT_API_URL)),
        fetch_timeout=_number(
            _pick(options, file_options, "fetch_timeout", DEFAULT_FETCH_TIMEOUT),
            "fetch_timeout",
            float,
        ),
        device_timeout=(
            _number(device_timeout, "device_timeout", float)
            if device_timeout is not None
            else None
        ),
    )
