"""Slug archives: gzip-compressed tarballs of Terraform configuration.

``pack`` writes a directory into a slug and ``unpack`` restores one.
Directory entries carry a trailing slash, symlinks are stored as symlinks
with their target, and regular file permissions are preserved.
"""

import logging
import os
import shutil
import stat
import tarfile
from dataclasses import dataclass, field
from typing import BinaryIO, List, Union

from .exceptions import TFEError

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class SlugError(TFEError):
    """Raised when a slug cannot be packed or unpacked."""

    message = "slug error"


class IllegalSlugError(SlugError):
    """Raised when an archive entry would be written outside the destination."""


@dataclass
class SlugMeta:
    """Files written to a slug and the total size of their contents in bytes."""

    files: List[str] = field(default_factory=list)
    size: int = 0


def _walk(src: str, dereference: bool):
    """Yield (path, relative name) pairs in a stable, top-down order."""
    for root, dirs, files in os.walk(src, followlinks=dereference):
        dirs.sort()
        for name in sorted(dirs + files):
            path = os.path.join(root, name)
            rel = os.path.relpath(path, src).replace(os.sep, "/")
            yield path, rel


def pack(src_dir: PathLike, writer: BinaryIO, dereference: bool = False) -> SlugMeta:
    """Write ``src_dir`` as a gzip-compressed tar stream to ``writer``.

    Args:
        src_dir: Directory to archive
        writer: Binary stream receiving the archive; left open
        dereference: Store symlink targets' contents instead of the links

    Returns:
        The archived entry names and the total size of regular files

    Raises:
        SlugError: If a file cannot be read or written to the archive
    """
    src = os.fspath(src_dir)
    if not os.path.isdir(src):
        raise SlugError(f"Failed to pack slug: {src!r} is not a directory")

    meta = SlugMeta()
    try:
        with tarfile.open(fileobj=writer, mode="w:gz", dereference=dereference) as tar:
            for path, rel in _walk(src, dereference):
                info = os.stat(path) if dereference else os.lstat(path)
                mode = info.st_mode
                if not (stat.S_ISREG(mode) or stat.S_ISDIR(mode) or stat.S_ISLNK(mode)):
                    continue

                tarinfo = tar.gettarinfo(path, arcname=rel)
                if stat.S_ISDIR(mode):
                    tarinfo.name = rel + "/"
                meta.files.append(tarinfo.name)

                if stat.S_ISREG(mode):
                    meta.size += info.st_size
                    with open(path, "rb") as fh:
                        tar.addfile(tarinfo, fh)
                else:
                    tar.addfile(tarinfo)
        writer.flush()
    except OSError as e:
        raise SlugError(f"Failed to pack slug: {e}") from e
    return meta


def _safe_target(dst: str, name: str) -> str:
    name = name.lstrip("/")
    target = os.path.normpath(os.path.join(dst, name))
    if os.path.commonpath([dst, target]) != dst:
        raise IllegalSlugError(f"Invalid slug entry {name!r}: escapes destination")
    parent = os.path.realpath(os.path.dirname(target))
    if os.path.commonpath([os.path.realpath(dst), parent]) != os.path.realpath(dst):
        raise IllegalSlugError(f"Invalid slug entry {name!r}: parent is outside destination")
    return target


def unpack(reader: BinaryIO, dst_dir: PathLike) -> None:
    """Extract a slug read from ``reader`` into ``dst_dir``.

    Raises:
        IllegalSlugError: If an entry would land outside ``dst_dir``
        SlugError: If the archive is corrupt or a file cannot be written
    """
    dst = os.path.abspath(os.fspath(dst_dir))
    os.makedirs(dst, exist_ok=True)
    try:
        with tarfile.open(fileobj=reader, mode="r:gz") as tar:
            for member in tar:
                target = _safe_target(dst, member.name)
                os.makedirs(os.path.dirname(target), exist_ok=True)

                if member.issym():
                    os.symlink(member.linkname, target)
                    continue
                if member.isdir():
                    os.makedirs(target, exist_ok=True)
                    continue
                if not member.isfile():
                    logger.warning(f"Unsupported entry type in slug, skipping: {member.name}")
                    continue

                if os.path.exists(target) and not os.access(target, os.W_OK):
                    # Later duplicates replace earlier ones even when read-only.
                    os.chmod(target, 0o600)
                source = tar.extractfile(member)
                if source is None:
                    raise SlugError(f"Failed to read slug entry {member.name!r}")
                with source, open(target, "wb") as fh:
                    shutil.copyfileobj(source, fh)
                os.chmod(target, member.mode & 0o7777)
    except (tarfile.TarError, EOFError, OSError) as e:
        raise SlugError(f"Failed to unpack slug: {e}") from e
