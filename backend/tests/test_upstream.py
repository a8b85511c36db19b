import socket
import threading
import time

import pytest
import requests

from backend.app.errors import UpstreamError, UpstreamRateLimitedError, UpstreamTimeoutError
from backend.app.services.upstream import USER_AGENT, TikwmClient, extract_videos


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = b""
        self.closed = False

    def close(self):
        self.closed = True

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None, headers=None, stream=False):
        self.calls.append(
            {"url": url, "params": params, "timeout": timeout, "headers": headers, "stream": stream}
        )
        if self.error is not None:
            raise self.error
        return self.response


def make_client(session):
    return TikwmClient("https://api.example/api/", timeout=8.0, search_count=20, session=session)


def test_search_sends_keywords_count_and_hd():
    session = FakeSession(FakeResponse(payload={"data": {"videos": []}}))
    client = make_client(session)

    assert client.search("spider man", hd=True) == {"data": {"videos": []}}
    call = session.calls[0]
    assert call["url"] == "https://api.example/api/feed/search"
    assert call["params"] == {"keywords": "spider man", "count": 20, "hd": 1}
    assert call["timeout"] == 8.0
    assert call["headers"] == {"User-Agent": USER_AGENT}
    assert call["stream"] is True


def test_trending_calls_feed_list():
    session = FakeSession(FakeResponse(payload={"data": {"videos": []}}))
    make_client(session).trending()
    assert session.calls[0]["url"] == "https://api.example/api/feed/list"
    assert session.calls[0]["params"] is None


def test_timeout_is_classified():
    client = make_client(FakeSession(error=requests.ReadTimeout("read timed out")))
    with pytest.raises(UpstreamTimeoutError) as excinfo:
        client.search("cats")
    assert excinfo.value.status_code == 504


def test_connect_timeout_is_classified_as_timeout():
    client = make_client(FakeSession(error=requests.ConnectTimeout("connect timed out")))
    with pytest.raises(UpstreamTimeoutError):
        client.trending()


def test_rate_limit_is_classified():
    client = make_client(FakeSession(FakeResponse(status_code=429, text="slow down")))
    with pytest.raises(UpstreamRateLimitedError) as excinfo:
        client.search("cats")
    assert excinfo.value.status_code == 429


def test_other_status_and_transport_errors_are_generic():
    client = make_client(FakeSession(FakeResponse(status_code=503)))
    with pytest.raises(UpstreamError) as excinfo:
        client.search("cats")
    assert type(excinfo.value) is UpstreamError
    assert "503" in excinfo.value.message

    client = make_client(FakeSession(error=requests.ConnectionError("refused")))
    with pytest.raises(UpstreamError):
        client.search("cats")


def test_non_json_body_returns_none():
    client = make_client(FakeSession(FakeResponse(status_code=200, payload=None, text="<html>")))
    assert client.search("cats") is None


def test_extract_videos():
    assert extract_videos({"data": {"videos": [{"play": "x"}]}}) == [{"play": "x"}]
    assert extract_videos({"data": {"videos": []}}) == []
    assert extract_videos(None) is None
    assert extract_videos("oops") is None
    assert extract_videos({"data": []}) is None
    assert extract_videos({"data": {"videos": "nope"}}) is None


def direct_session():
    session = requests.Session()
    session.trust_env = False
    return session


def serve_once(body: bytes, byte_delay: float):
    """Serve one HTTP response on localhost, writing the body a byte at a time."""
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    stop = threading.Event()

    def handle():
        conn, _addr = listener.accept()
        try:
            conn.recv(65536)
            conn.sendall(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: application/json\r\n"
                b"Content-Length: " + str(len(body)).encode() + b"\r\n"
                b"Connection: close\r\n\r\n"
            )
            for index in range(len(body)):
                if stop.is_set():
                    break
                conn.sendall(body[index:index + 1])
                time.sleep(byte_delay)
        except OSError:
            pass
        finally:
            conn.close()
            listener.close()

    thread = threading.Thread(target=handle, daemon=True)
    thread.start()
    return f"http://127.0.0.1:{listener.getsockname()[1]}", stop


def test_slow_body_fails_within_the_timeout_budget():
    body = b'{"data": {"videos": []}, "padding": "' + b"x" * 40 + b'"}'
    base_url, stop = serve_once(body, byte_delay=0.25)
    client = TikwmClient(base_url, timeout=1.0, session=direct_session())

    started = time.monotonic()
    try:
        with pytest.raises(UpstreamTimeoutError):
            client.trending()
    finally:
        stop.set()
    elapsed = time.monotonic() - started

    assert elapsed < 2.5


def test_real_response_is_read_through_the_worker():
    base_url, _stop = serve_once(b'{"data": {"videos": [{"play": "x"}]}}', byte_delay=0)
    client = TikwmClient(base_url, timeout=5.0, session=direct_session())

    assert extract_videos(client.trending()) == [{"play": "x"}]
