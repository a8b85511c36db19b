import logging
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

try:
    from backend.app.services.collation import vietnamese_sort_key
except ModuleNotFoundError:
    from app.services.collation import vietnamese_sort_key

log = logging.getLogger("app.library")

HIDDEN_PREFIX = "."


def ensure_library_dir(library_dir: str | Path) -> Path:
    path = Path(library_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _join_relative(relative_path: str, name: str) -> str:
    return f"{relative_path}/{name}" if relative_path else name


def _display(text: str) -> str:
    # Undecodable bytes in names come back from listdir as surrogate escapes.
    return os.fsencode(text).decode("utf-8", "replace")


def _mtime_iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def _node_sort_key(node: dict[str, Any]) -> tuple:
    return (0 if node["type"] == "dir" else 1, vietnamese_sort_key(node["name"]))


def build_library_tree(root_dir: str | Path, base_url: str, relative_path: str = "") -> list[dict[str, Any]]:
    """
    Walk ``root_dir`` and return its entries as nested dir/file nodes.

    Hidden names are skipped. Directories come before files, each group in
    Vietnamese name order. A directory that cannot be listed yields an empty
    list instead of failing the whole walk.
    """
    root = Path(root_dir)
    relative_path = relative_path.replace("\\", "/").strip("/")
    abs_dir = root / relative_path if relative_path else root

    try:
        names = os.listdir(abs_dir)
    except OSError as exc:
        log.warning("Library listing failed path=%s: %s", abs_dir, exc)
        return []

    nodes: list[dict[str, Any]] = []
    for name in names:
        if name.startswith(HIDDEN_PREFIX):
            continue
        rel = _join_relative(relative_path, name)
        full = abs_dir / name
        try:
            info = full.stat()
        except OSError as exc:
            # Entry vanished or is a dangling link.
            log.warning("Library stat failed path=%s: %s", full, exc)
            continue

        if stat.S_ISDIR(info.st_mode):
            nodes.append(
                {
                    "type": "dir",
                    "name": _display(name),
                    "path": _display(rel),
                    "children": build_library_tree(root, base_url, rel),
                }
            )
        else:
            nodes.append(
                {
                    "type": "file",
                    "name": _display(name),
                    "path": _display(rel),
                    "size": info.st_size,
                    "modified": _mtime_iso(info.st_mtime),
                    "url": f"{base_url}/{_display(rel)}",
                }
            )

    nodes.sort(key=_node_sort_key)
    return nodes
