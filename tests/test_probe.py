import pytest

from mediabridge import probe
from mediabridge.lib.errors import TransportFailure


def test_prints_base_url(monkeypatch, capsys):
    seen = []

    async def fake_probe(url, timeout=None):
        seen.append((url, timeout))
        return "http://media.local:8096"

    monkeypatch.setattr(probe, "probe", fake_probe)
    assert probe.main(["media.local:8096", "--timeout", "5"]) == 0
    assert capsys.readouterr().out.strip() == "http://media.local:8096"
    assert seen == [("media.local:8096", 5.0)]


def test_unreachable_exits_nonzero(monkeypatch, capsys):
    async def fake_probe(url, timeout=None):
        raise TransportFailure("connection refused")

    monkeypatch.setattr(probe, "probe", fake_probe)
    assert probe.main(["down.local", "-v"]) == 1
    assert capsys.readouterr().out == ""


def test_url_is_required():
    with pytest.raises(SystemExit):
        probe.main([])
