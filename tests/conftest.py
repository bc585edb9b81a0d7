import pytest
import requests
from librouteros.exceptions import TrapError

from ros_asn_sync.config import Config


def make_config(tmp_path, **overrides):
    values = dict(
        router="192.0.2.1",
        user="api",
        password="secret",
        address_list="ASN-ALLOW",
        asns=("64500",),
        cache_path=str(tmp_path / "cache"),
    )
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def config(tmp_path):
    (tmp_path / "cache").mkdir()
    return make_config(tmp_path)


class FakeApi:
    """In-memory stand-in for librouteros.api.Api, rawCmd surface only."""

    def __init__(self, entries=None, fail_on=None):
        self.entries = []
        self.next_id = 1
        self.calls = []
        self.closed = False
        # (command, nth call) that raises a TrapError
        self.fail_on = fail_on
        for list_name, address, comment in entries or []:
            self._add(list_name, address, comment)

    def _add(self, list_name, address, comment):
        entry = {
            ".id": f"*{self.next_id:X}",
            "list": list_name,
            "address": address,
            "comment": comment,
        }
        self.next_id += 1
        self.entries.append(entry)
        return entry[".id"]

    def rawCmd(self, command, *words):
        self.calls.append((command,) + words)
        # librouteros encodes sentences as ASCII by default
        for word in (command,) + words:
            word.encode("ascii")
        if self.fail_on is not None:
            fail_command, nth = self.fail_on
            seen = sum(1 for c in self.calls if c[0] == fail_command)
            if command == fail_command and seen == nth:
                raise TrapError(message="failure: simulated")

        queries = {}
        attrs = {}
        proplist = None
        for word in words:
            if word.startswith("?"):
                key, value = word[1:].split("=", 1)
                queries[key] = value
            elif word.startswith("=.proplist="):
                proplist = word.split("=", 2)[2].split(",")
            elif word.startswith("="):
                key, value = word[1:].split("=", 1)
                attrs[key] = value

        if command.endswith("/print"):
            for entry in list(self.entries):
                if all(entry.get(k) == v for k, v in queries.items()):
                    if proplist:
                        yield {k: entry[k] for k in proplist}
                    else:
                        yield dict(entry)
        elif command.endswith("/remove"):
            self.entries = [e for e in self.entries if e[".id"] != attrs[".id"]]
        elif command.endswith("/add"):
            yield {"ret": self._add(attrs["list"], attrs["address"], attrs["comment"])}

    def close(self):
        self.closed = True

    def addresses(self, list_name, comment):
        return [
            e["address"]
            for e in self.entries
            if e["list"] == list_name and e["comment"] == comment
        ]


class FakeConnect:
    """Replacement for librouteros.connect returning a prepared FakeApi."""

    def __init__(self, api=None, error=None):
        self.api = api or FakeApi()
        self.error = error
        self.kwargs = None

    def __call__(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.api


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.text is not None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.headers = {}
        self.requests = []
        self.closed = False

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


def bgpview_payload(*prefixes):
    return {
        "status": "ok",
        "status_message": "Query was successful",
        "data": {
            "ipv4_prefixes": [
                {"ip": p.split("/")[0], "cidr": int(p.split("/")[1])} for p in prefixes
            ],
            "ipv6_prefixes": [],
        },
    }
