import logging
import os

import pytest

from ros_asn_sync import cli
from ros_asn_sync.cache import CacheStore

BASE_ARGS = [
    "--router",
    "192.0.2.1",
    "--user",
    "api",
    "--password",
    "secret",
    "--list",
    "ASN-ALLOW",
]


class FakeSynchronizer:
    instances = []

    def __init__(self, config):
        self.config = config
        self.ran = False
        self.closed = False
        self.cache = CacheStore(config)
        FakeSynchronizer.instances.append(self)

    def run(self):
        self.ran = True

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def fake_sync(monkeypatch):
    FakeSynchronizer.instances = []
    monkeypatch.setattr(cli, "Synchronizer", FakeSynchronizer)
    monkeypatch.delenv("ROUTEROS_PASSWORD", raising=False)
    yield
    logging.getLogger().setLevel(logging.WARNING)


def test_run_creates_cache_dir_and_exits_zero(tmp_path):
    cache_dir = tmp_path / "cache"

    code = cli.main(BASE_ARGS + ["--ASN", "64500,AS64501", "--cachepath", str(cache_dir)])

    assert code == 0
    assert os.path.isdir(cache_dir)
    sync = FakeSynchronizer.instances[0]
    assert sync.ran and sync.closed
    assert sync.config.asns == ("64500", "64501")
    assert sync.config.cache_path == str(cache_dir)


def test_lowercase_asn_option(tmp_path):
    cli.main(BASE_ARGS + ["--asn", "13335", "--cachepath", str(tmp_path)])

    assert FakeSynchronizer.instances[0].config.asns == ("13335",)


def test_missing_required_option_exits_2(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--router", "192.0.2.1", "--cachepath", str(tmp_path)])

    assert exc.value.code == 2
    assert "missing required options" in capsys.readouterr().err
    assert FakeSynchronizer.instances == []


def test_invalid_asn_exits_2(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(BASE_ARGS + ["--ASN", "not-an-asn", "--cachepath", str(tmp_path)])

    assert exc.value.code == 2


def test_help_exits_zero():
    with pytest.raises(SystemExit) as exc:
        cli.main(["--help"])

    assert exc.value.code == 0


def test_unusable_cache_dir_exits_1(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")

    code = cli.main(BASE_ARGS + ["--ASN", "64500", "--cachepath", str(blocker / "c")])

    assert code == 1
    assert "cannot create cache directory" in capsys.readouterr().err
    sync = FakeSynchronizer.instances[0]
    assert not sync.ran and sync.closed


def test_yaml_config_with_overrides(tmp_path):
    path = tmp_path / "sync.yaml"
    path.write_text(
        "router: 198.51.100.1\n"
        "user: api\n"
        "password: from-file\n"
        "list: FROM-FILE\n"
        "ASN: [13335]\n"
        "ssl: true\n"
        f"cachepath: {tmp_path / 'cache'}\n",
        encoding="utf-8",
    )

    cli.main(["--config", str(path), "--router", "192.0.2.1", "--cachettl", "60"])

    config = FakeSynchronizer.instances[0].config
    assert config.router == "192.0.2.1"
    assert config.password == "from-file"
    assert config.address_list == "FROM-FILE"
    assert config.asns == ("13335",)
    assert config.ssl is True
    assert config.api_port == 8729
    assert config.cache_ttl == 60


def test_verbose_enables_logging(tmp_path):
    cli.main(BASE_ARGS + ["--ASN", "64500", "-v", "--cachepath", str(tmp_path)])

    assert logging.getLogger().getEffectiveLevel() == logging.INFO


def test_quiet_by_default(tmp_path):
    cli.main(BASE_ARGS + ["--ASN", "64500", "--cachepath", str(tmp_path)])

    assert not logging.getLogger().isEnabledFor(logging.CRITICAL)
