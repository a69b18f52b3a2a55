"""S3 cache store: one gzip tarball object per key under a bucket prefix.

Requires optional dependency: ``pip install ci-cache[s3]``
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ci_cache.cache.archive import pack_paths, snapshot_covers, unpack_paths
from ci_cache.cache.key_strategy import rank_matches
from ci_cache.cache.models import RestoreFailed, RestoreHit, RestoreMiss, RestoreOutcome, SaveResult
from ci_cache.exceptions import SnapshotError, StoreUnavailableError

log = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.gz"


def _boto_errors() -> tuple[type[Exception], ...]:
    from botocore.exceptions import BotoCoreError, ClientError

    return (BotoCoreError, ClientError)


def _error_code(error: Exception) -> str:
    response = getattr(error, "response", None) or {}
    return str(response.get("Error", {}).get("Code", ""))


class S3CacheStore:
    """Stores snapshots as ``<prefix><key>.tar.gz`` objects in an S3 bucket.

    Saves use a conditional put (``If-None-Match: *``) so an entry written by
    a concurrent job is never replaced.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "ci-cache/",
        region: str = "us-east-1",
        client: Any = None,
    ) -> None:
        if client is None:
            try:
                import boto3 as _boto3
            except ImportError as e:
                raise ImportError(
                    "boto3 is required for the S3 cache store. "
                    "Install with: pip install ci-cache[s3]"
                ) from e
            client = _boto3.client("s3", region_name=region)

        self._bucket = bucket
        self._prefix = prefix
        self._s3 = client

    def _object_key(self, key: str) -> str:
        return f"{self._prefix}{key}{ARCHIVE_SUFFIX}"

    def _list_entries(self, search_prefix: str) -> dict[str, float]:
        entries: dict[str, float] = {}
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=f"{self._prefix}{search_prefix}"):
            for obj in page.get("Contents", []):
                name = obj["Key"][len(self._prefix):]
                if not name.endswith(ARCHIVE_SUFFIX):
                    continue
                entries[name[: -len(ARCHIVE_SUFFIX)]] = obj["LastModified"].timestamp()
        return entries

    def restore(
        self,
        paths: Sequence[Path],
        exact_key: str,
        fallback_keys: Sequence[str] = (),
    ) -> RestoreOutcome:
        # Every candidate shares the shortest key as a prefix, so one listing covers them all.
        search_prefix = min([exact_key, *fallback_keys], key=len)
        try:
            candidates = rank_matches(exact_key, fallback_keys, self._list_entries(search_prefix))
        except _boto_errors() as e:
            return RestoreFailed(
                StoreUnavailableError(f"Cannot read from s3://{self._bucket}/{self._prefix}: {e}")
            )

        for candidate in candidates:
            object_key = self._object_key(candidate)
            try:
                data = self._s3.get_object(Bucket=self._bucket, Key=object_key)["Body"].read()
            except _boto_errors() as e:
                return RestoreFailed(
                    StoreUnavailableError(f"Cannot read from s3://{self._bucket}/{object_key}: {e}")
                )
            try:
                if not snapshot_covers(data, paths):
                    log.debug("Skipping %s: saved for a different path set", candidate)
                    continue
                unpack_paths(data, paths)
            except SnapshotError as e:
                return RestoreFailed(e)
            log.debug("Restored %s from s3://%s/%s", candidate, self._bucket, object_key)
            return RestoreHit(candidate)
        return RestoreMiss()

    def _exists(self, object_key: str) -> bool:
        try:
            self._s3.head_object(Bucket=self._bucket, Key=object_key)
            return True
        except _boto_errors() as e:
            if _error_code(e) in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StoreUnavailableError(f"Cannot check s3://{self._bucket}/{object_key}: {e}") from e

    def save(self, paths: Sequence[Path], key: str) -> SaveResult:
        object_key = self._object_key(key)
        if self._exists(object_key):
            return SaveResult.ALREADY_EXISTS

        data = pack_paths(paths)
        try:
            self._s3.put_object(
                Bucket=self._bucket,
                Key=object_key,
                Body=data,
                ContentType="application/gzip",
                IfNoneMatch="*",
            )
        except _boto_errors() as e:
            if _error_code(e) in ("PreconditionFailed", "412", "ConditionalRequestConflict"):
                return SaveResult.ALREADY_EXISTS
            raise StoreUnavailableError(f"Cannot write s3://{self._bucket}/{object_key}: {e}") from e

        log.debug("Saved %s to s3://%s/%s", key, self._bucket, object_key)
        return SaveResult.STORED
