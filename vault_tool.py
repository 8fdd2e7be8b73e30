#!/usr/bin/env python3
"""
Command-line access to the URL vault store.

Subcommands:
- ingest: download a URL and store it exactly like the web form does
- upload: store a local file under its content hash, like the upload form
- search: list metadata records whose title contains a term
- lookup: show the stored URL for a URL or content key
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from functools import partial

from werkzeug.datastructures import FileStorage

from urlvault.errors import ConfigError, StoreError, UploadRejected
from urlvault.extraction.download import fetch_content
from urlvault.ingestion.ingest import ingest_submission
from urlvault.ingestion.submission import OPTIONAL_FIELDS, Submission, sanitize_input
from urlvault.ingestion.upload import FILE_FIELD, Upload, ingest_upload
from urlvault.ingestion.url_utils import resolve_key
from urlvault.search.metadata_search import iter_matches
from urlvault.settings import load_settings
from urlvault.storage.layout import url_path
from urlvault.storage.store import FilesystemStore


def _cmd_ingest(args, settings) -> int:
    form = {"url": args.url}
    for name in OPTIONAL_FIELDS:
        form[name] = getattr(args, name) or ""
    submission = Submission.from_form(form)
    fetch = partial(fetch_content, user_agent=settings.user_agent, timeout=settings.fetch_timeout)
    result = ingest_submission(submission, FilesystemStore(settings.storage_root), fetch=fetch)
    print(f"key={result.key}")
    print(f"content={result.content_path}")
    if result.metadata_path:
        print(f"metadata={result.metadata_path}")
    for w in result.failed_writes:
        print(f"[warn] write failed: {w.path}: {w.error}", file=sys.stderr)
    return 0


def _cmd_upload(args, settings) -> int:
    form = {name: getattr(args, name) or "" for name in OPTIONAL_FIELDS}
    form["url"] = args.source_url or ""
    try:
        with open(args.path, "rb") as f:
            files = {FILE_FIELD: FileStorage(stream=f, filename=os.path.basename(args.path))}
            upload = Upload.from_form(form, files)
    except OSError as e:
        print(f"Cannot read {args.path}: {e}", file=sys.stderr)
        return 1
    except UploadRejected as e:
        print(f"Upload rejected: {e}", file=sys.stderr)
        return 1
    result = ingest_upload(upload, FilesystemStore(settings.storage_root))
    if not result.success:
        for w in result.failed_writes:
            print(f"Write failed: {w.path}: {w.error}", file=sys.stderr)
        return 1
    print(f"key={result.key}")
    print(f"content={result.content_path}")
    print(f"metadata={result.metadata_path}")
    return 0


def _cmd_search(args, settings) -> int:
    count = 0
    for match in iter_matches(FilesystemStore(settings.storage_root), args.term):
        print(f"{match.title}\t{match.relative_path}")
        count += 1
    if count == 0:
        print("No matching files found.")
    return 0


def _cmd_lookup(args, settings) -> int:
    store = FilesystemStore(settings.storage_root)
    key = resolve_key(sanitize_input(args.value))
    path = url_path(key)
    if not store.is_file(path):
        print(f"No stored entry for key {key}", file=sys.stderr)
        return 1
    print(f"{key}\t{store.read(path).decode('utf-8', errors='replace')}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Store and search downloaded URLs")
    parser.add_argument("--root", default=None, help="Storage root (defaults to STORAGE_ROOT in env)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_ingest = sub.add_parser("ingest", help="Download and store a URL")
    p_ingest.add_argument("url")
    for name in OPTIONAL_FIELDS:
        p_ingest.add_argument(f"--{name}", default="", help=f"Optional {name} metadata")
    p_ingest.set_defaults(func=_cmd_ingest)

    p_upload = sub.add_parser("upload", help="Store a local file under its content hash")
    p_upload.add_argument("path")
    p_upload.add_argument("--source-url", default="", help="Where the file came from")
    for name in OPTIONAL_FIELDS:
        p_upload.add_argument(f"--{name}", default="", help=f"Optional {name} metadata")
    p_upload.set_defaults(func=_cmd_upload)

    p_search = sub.add_parser("search", help="Search metadata titles")
    p_search.add_argument("term")
    p_search.set_defaults(func=_cmd_search)

    p_lookup = sub.add_parser("lookup", help="Find the stored URL for a URL or key")
    p_lookup.add_argument("value")
    p_lookup.set_defaults(func=_cmd_lookup)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        settings = load_settings(storage_root=args.root)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        return args.func(args, settings)
    except StoreError as e:
        print(f"Store error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.")
        raise SystemExit(130)
