"""Quickstart: resolve, write, list and read with blobvfs.

Demonstrates:
- Opening a FileSystemManager
- Resolving ``file://`` URIs to handles
- Writing, listing and reading files
- Deleting a tree with a selector
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from blobvfs import SELECT_ALL, FileSystemManager

if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp, FileSystemManager() as manager:
        root = manager.resolve_file(Path(tmp).as_uri())

        # Write a couple of files (parent folders are created as needed)
        root.resolve_file("reports/q4.csv").write_bytes(b"revenue,profit\n100,20\n")
        root.resolve_file("hello.txt").write_bytes(b"Hello, world!")

        # List the root
        for child in root.get_children():
            print(f"{child.name.base_name:12} {child.get_type().name}")

        # Read it back, with metadata
        hello = root.resolve_file("hello.txt")
        print(f"Content: {hello.read_bytes()!r}")
        info = hello.get_content_info()
        print(f"Size: {info.size} bytes, modified {info.last_modified:%Y-%m-%d %H:%M}")

        # Delete the reports folder and everything below it
        deleted = root.resolve_file("reports").delete(SELECT_ALL)
        print(f"Deleted {deleted} entries")

    print("Done! Temp directory cleaned up automatically.")
