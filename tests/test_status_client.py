import requests

from client import status_client


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self.payload


def _serve(routes):
    def fake_get(url, timeout):
        path = url[len(status_client.DEFAULT_BASE_URL):]
        return FakeResponse(routes[path])
    return fake_get


def test_print_status(monkeypatch, capsys):
    monkeypatch.setattr(status_client.requests, "get", _serve({
        "/api": {"message": "API Online!"},
        "/flights": {"result": [{"id": 0, "name": "JJ3720"}]},
        "/eventIndex": {"result": 4},
    }))
    assert status_client.print_status(status_client.DEFAULT_BASE_URL) is True
    out = capsys.readouterr().out
    assert "JJ3720" in out
    assert "Last oracle request index: 4" in out


def test_unreachable_server_is_reported(monkeypatch, capsys):
    def refuse(url, timeout):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(status_client.requests, "get", refuse)
    assert status_client.main([]) == 1
    assert "unavailable" in capsys.readouterr().out
