"""Copy a local folder into Azure Blob Storage (or S3) and back.

Usage::

    export BLOBVFS_ACCOUNT=myaccount BLOBVFS_ACCOUNT_KEY=...
    python examples/copy_tree.py /some/local/folder azsb://myaccount.blob.core.windows.net/container/backup

``s3://<endpoint>/<bucket>/<prefix>`` targets work the same way, with the
access key id and secret in the same two variables. Request defaults are
read from ``BLOBVFS_*`` variables (see ``BlobFileSystemConfig.from_env``).
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from blobvfs import (
    SELECT_FILES,
    BlobFileSystemConfig,
    CopyError,
    FileSystemManager,
    FileSystemOptions,
    StaticUserAuthenticator,
    find_files,
)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) != 3:
        sys.exit(__doc__)
    local_dir, target_uri = sys.argv[1], sys.argv[2]

    options = FileSystemOptions(
        authenticator=StaticUserAuthenticator(os.environ.get("BLOBVFS_ACCOUNT"), os.environ.get("BLOBVFS_ACCOUNT_KEY")),
        config=BlobFileSystemConfig.from_env(),
    )

    with FileSystemManager(options) as manager:
        source = manager.resolve_file(Path(local_dir).resolve().as_uri())
        target = manager.resolve_file(target_uri)

        try:
            target.copy_from(source)
        except CopyError as e:
            # Entries copied before the failure stay in place.
            sys.exit(f"Copy failed at {e.source}: {e.__cause__}")

        for f in find_files(target, SELECT_FILES):
            print(f"{target.name.relative_name(f.name):40} {f.get_content_size():>10}  {f.get_content_type()}")
