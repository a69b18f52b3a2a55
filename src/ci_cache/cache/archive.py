"""Path snapshot codec: pack filesystem paths into a gzip tarball and back.

Archive layout::

    paths/0/...        first path (file or directory tree)
    paths/1/...        second path
    manifest.json      {"version": 1, "requested": ["..."],
                        "paths": [{"index": 0, "path": "..."}]}

Restoring writes each stored path back to the same location it was taken
from, so a snapshot only restores into the paths it was saved for.
``requested`` records every path the snapshot was taken for, including ones
that did not exist, and identifies which restores the snapshot can serve.
"""

from __future__ import annotations

import io
import json
import logging
import shutil
import tarfile
import tempfile
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ci_cache.exceptions import SnapshotError

log = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
ARCHIVE_VERSION = 1


def normalize_path(path: Path | str) -> Path:
    """Expand ``~`` and make absolute, without resolving symlinks."""
    return Path(path).expanduser().absolute()


def pack_paths(paths: Sequence[Path | str]) -> bytes:
    """Archive ``paths`` into gzip tarball bytes.

    Missing paths are skipped with a warning.  Raises ``SnapshotError`` if
    none of the paths exists.
    """
    entries: list[dict[str, object]] = []
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for index, raw_path in enumerate(paths):
            path = normalize_path(raw_path)
            if not path.exists():
                log.warning("Cache path %s does not exist; skipping", path)
                continue
            tar.add(str(path), arcname=f"paths/{index}")
            entries.append({"index": index, "path": str(path)})

        if not entries:
            raise SnapshotError(
                "None of the cache paths exist; nothing to save: "
                + ", ".join(str(p) for p in paths)
            )

        requested = sorted({str(normalize_path(p)) for p in paths})
        manifest = json.dumps(
            {"version": ARCHIVE_VERSION, "requested": requested, "paths": entries}
        ).encode("utf-8")
        info = tarfile.TarInfo(MANIFEST_NAME)
        info.size = len(manifest)
        info.mtime = int(time.time())
        tar.addfile(info, io.BytesIO(manifest))

    return buffer.getvalue()


def _read_manifest(tar: tarfile.TarFile) -> dict[str, Any]:
    try:
        member = tar.getmember(MANIFEST_NAME)
    except KeyError:
        raise SnapshotError("Cache archive has no manifest") from None
    handle = tar.extractfile(member)
    if handle is None:
        raise SnapshotError("Cache archive manifest is not a regular file")
    manifest = json.loads(handle.read().decode("utf-8"))
    if manifest.get("version") != ARCHIVE_VERSION:
        raise SnapshotError(f"Unsupported cache archive version: {manifest.get('version')!r}")
    return manifest


def snapshot_covers(data: bytes, paths: Sequence[Path | str]) -> bool:
    """True if the snapshot was taken for exactly the path set ``paths``.

    A snapshot saved for other paths shares nothing with this restore, even
    when its key matches a fallback prefix.
    """
    wanted = {str(normalize_path(p)) for p in paths}
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            manifest = _read_manifest(tar)
    except (tarfile.TarError, EOFError, OSError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Failed to read cache archive: {e}") from e
    return set(manifest.get("requested", [])) == wanted


def unpack_paths(data: bytes, paths: Sequence[Path | str]) -> list[Path]:
    """Restore archived paths that are among ``paths``.

    Returns the paths actually written.  Existing directories are merged
    into; existing files are replaced.
    """
    wanted = {str(normalize_path(p)) for p in paths}
    restored: list[Path] = []

    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            entries = list(_read_manifest(tar).get("paths", []))
            with tempfile.TemporaryDirectory(prefix="ci-cache-") as scratch:
                tar.extractall(scratch, filter="data")
                for entry in entries:
                    target = Path(str(entry["path"]))
                    if str(target) not in wanted:
                        log.debug("Archived path %s was not requested; skipping", target)
                        continue
                    source = Path(scratch) / "paths" / str(entry["index"])
                    if source.is_dir():
                        shutil.copytree(source, target, symlinks=True, dirs_exist_ok=True)
                    else:
                        target.parent.mkdir(parents=True, exist_ok=True)
                        shutil.copy2(source, target)
                    restored.append(target)
    except (tarfile.TarError, EOFError, OSError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Failed to unpack cache archive: {e}") from e

    return restored
