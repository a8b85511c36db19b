from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend.app.config import load_settings
from backend.app.services.library_tree import build_library_tree


def count_nodes(nodes: list[dict[str, Any]]) -> tuple[int, int]:
    dirs = 0
    files = 0
    for node in nodes:
        if node["type"] == "dir":
            dirs += 1
            child_dirs, child_files = count_nodes(node["children"])
            dirs += child_dirs
            files += child_files
        else:
            files += 1
    return dirs, files


def main() -> int:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Print or write the library tree as JSON.")
    parser.add_argument("--root", type=Path, default=settings.library_dir)
    parser.add_argument("--base-url", default=settings.library_base_url)
    parser.add_argument("--output", type=Path, default=None)
    args = parser.parse_args()

    if not args.root.is_dir():
        print(f"Library root not found: {args.root}", file=sys.stderr)
        return 1

    items = build_library_tree(args.root, args.base_url.rstrip("/"))
    output = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "baseUrl": args.base_url,
        "items": items,
    }
    payload = json.dumps(output, indent=2, ensure_ascii=False)

    if args.output is None:
        print(payload)
        return 0

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(payload, encoding="utf-8")
    dirs, files = count_nodes(items)
    print(f"Wrote library snapshot: {args.output}")
    print(f"{dirs} directories, {files} files")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
