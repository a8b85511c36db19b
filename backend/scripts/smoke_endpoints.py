from __future__ import annotations

import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import backend.main as main_module
from backend.app.errors import QueryValidationError, UpstreamTimeoutError
from backend.app.services.feeds import list_library


def make_raw_video(video_id: str, play: str | None = None) -> dict:
    return {
        "video_id": video_id,
        "play": f"https://cdn.example/{video_id}.mp4" if play is None else play,
        "wmplay": f"https://cdn.example/{video_id}-wm.mp4",
        "title": f"Video {video_id}",
        "author": {"unique_id": "smoke", "nickname": "Smoke Author", "avatar": "https://img/a.jpg"},
        "cover": f"https://img/{video_id}.jpg",
        "duration": 15,
        "digg_count": 10,
        "comment_count": 2,
        "share_count": 1,
        "play_count": 100,
    }


def feed_payload(*videos: dict) -> dict:
    return {"code": 0, "data": {"videos": list(videos)}}


def assert_true(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def context():
    return main_module.app.state.context


def reset_state() -> None:
    context().cache.clear()


def test_health() -> None:
    reset_state()
    payload = main_module.health(context())
    assert_true(payload.get("status") == 200, "/api/health should report status=200")
    assert_true(payload.get("cache_size") == 0, "/api/health should report an empty cache after reset")


def test_search_cache() -> None:
    reset_state()
    call_count = {"search": 0}

    def fake_search(keywords: str, hd: bool = False) -> dict:
        _ = (keywords, hd)
        call_count["search"] += 1
        return feed_payload(make_raw_video("s1"), make_raw_video("s2", play=""))

    with patch.object(context().client, "search", side_effect=fake_search):
        payload_1 = main_module.search(context(), q="cats", quality="low")
        payload_2 = main_module.search(context(), q="cats", quality="low")

    assert_true(call_count["search"] == 1, "/api/search should hit upstream once then cache")
    assert_true(payload_1["cached"] is False, "/api/search first response should be uncached")
    assert_true(payload_2["cached"] is True, "/api/search second response should be cached")
    assert_true(payload_1["count"] == 1, "/api/search should drop records without a play url")
    assert_true(payload_1["videos"] == payload_2["videos"], "/api/search cached videos should be identical")


def test_search_validation() -> None:
    reset_state()
    try:
        main_module.search(context(), q=None)
    except QueryValidationError as exc:
        assert_true(exc.example is not None, "missing q should carry an example")
    else:
        raise AssertionError("/api/search without q should fail validation")


def test_search_timeout() -> None:
    reset_state()
    with patch.object(context().client, "search", side_effect=UpstreamTimeoutError()):
        try:
            main_module.search(context(), q="slow")
        except UpstreamTimeoutError as exc:
            assert_true(exc.status_code == 504, "timeouts should map to 504")
        else:
            raise AssertionError("/api/search should surface upstream timeouts")


def test_trending_cache() -> None:
    reset_state()
    call_count = {"trending": 0}

    def fake_trending() -> dict:
        call_count["trending"] += 1
        return feed_payload(make_raw_video("t1"))

    with patch.object(context().client, "trending", side_effect=fake_trending):
        payload_1 = main_module.trending(context())
        payload_2 = main_module.trending(context())

    assert_true(call_count["trending"] == 1, "/api/trending should hit upstream once then cache")
    assert_true(payload_2["cached"] is True, "/api/trending second response should be cached")


def test_library_tree() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        (root / "c").mkdir()
        (root / "b.txt").write_text("b", encoding="utf-8")
        (root / "a.txt").write_text("a", encoding="utf-8")
        payload = list_library(root, "/comics")

    names = [item["name"] for item in payload["items"]]
    assert_true(names == ["c", "a.txt", "b.txt"], "/api/library should list dirs first then files by name")
    assert_true(payload["items"][1]["url"] == "/comics/a.txt", "/api/library file urls should join base url")


def run() -> int:
    checks = [
        ("health", test_health),
        ("search cache", test_search_cache),
        ("search validation", test_search_validation),
        ("search timeout", test_search_timeout),
        ("trending cache", test_trending_cache),
        ("library tree", test_library_tree),
    ]
    failures = []

    for check_name, check_fn in checks:
        try:
            check_fn()
            print(f"[PASS] {check_name}")
        except Exception as exc:  # pragma: no cover - smoke script output path
            failures.append((check_name, str(exc)))
            print(f"[FAIL] {check_name}: {exc}")

    if failures:
        print(f"\nSmoke checks failed: {len(failures)}")
        for check_name, message in failures:
            print(f"- {check_name}: {message}")
        return 1

    print("\nAll smoke checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
