r"""
``archive``: Write and extract pack archives
=================================================

Each closed :class:`lfspack.binpack.LFSBin` is written as one tar
archive, ``pack-{n}.tar``, whose members are the objects' paths
relative to the object store (``ab/cd/abcd...``). Once every archive
has been written, each is compressed to ``pack-{n}.tar.gz``.

Extraction is the reverse. Each object is streamed to a temporary file
next to its destination and then moved into place, so an interrupted
or repeated extraction never leaves a partially written object.
"""

# Standard library
import gzip
import hashlib
import os
import re
import shutil
import sys
import tarfile
import tempfile
import zlib

# Local imports
from .lfspackerror import (
    LFSPackArchiveError,
    assert_isfile,
    trunc8_fname)


# Archive file names
ARCHIVE_PREFIX = "pack-"
ARCHIVE_EXT = ".tar"
ARCHIVE_GZEXT = ".tar.gz"

# Regular expression for archive names
REGEX_ARCHIVE = re.compile(r"^pack-(\d+)\.tar(\.gz)?$")

# Regular expression for LFS object IDs (SHA-256 hex digests)
REGEX_OID = re.compile(r"^[0-9a-f]{64}$")

# Read/write chunk size
CHUNK_SIZE = 1024 * 1024


def genr8_archive_name(n: int, compressed=True) -> str:
    r"""Get file name of archive number *n*

    :Call:
        >>> fname = genr8_archive_name(n, compressed=True)
    :Inputs:
        *n*: :class:`int`
            Archive number, starting at 1
        *compressed*: {``True``} | ``False``
            Whether to use ``.tar.gz`` or ``.tar`` extension
    :Outputs:
        *fname*: :class:`str`
            Base file name, like ``pack-1.tar.gz``
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    ext = ARCHIVE_GZEXT if compressed else ARCHIVE_EXT
    return f"{ARCHIVE_PREFIX}{n}{ext}"


def list_archives(fdir: str) -> list:
    r"""List pack archives in a folder, ordered by number

    If both ``pack-{n}.tar`` and ``pack-{n}.tar.gz`` exist, only the
    compressed one is listed.

    :Call:
        >>> fnames = list_archives(fdir)
    :Inputs:
        *fdir*: :class:`str`
            Folder to search
    :Outputs:
        *fnames*: :class:`list`\ [:class:`str`]
            Base names of archives
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Collect by number
    archives = {}
    for fname in os.listdir(fdir):
        # Check name
        match = REGEX_ARCHIVE.match(fname)
        if match is None:
            continue
        # Archive number
        n = int(match.group(1))
        # Prefer compressed version
        if match.group(2) or n not in archives:
            archives[n] = fname
    # Sort
    return [archives[n] for n in sorted(archives)]


def write_archive(lfsbin, farchive: str):
    r"""Write the objects of one bin to an uncompressed tar file

    :Call:
        >>> write_archive(lfsbin, farchive)
    :Inputs:
        *lfsbin*: :class:`lfspack.binpack.LFSBin`
            Bin of objects
        *farchive*: :class:`str`
            Name of tar file to create
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    with tarfile.open(farchive, "w") as tar:
        # Loop through objects in bin order
        for obj in lfsbin:
            # Fixed metadata so identical bins give identical archives
            tarinfo = _genr8_tarinfo(obj.oid, obj.size)
            # Copy contents
            with open(obj.path, "rb") as fp:
                tar.addfile(tarinfo, fp)


def compress_archive(ftar: str, quiet=True) -> str:
    r"""Compress ``pack-{n}.tar`` to ``pack-{n}.tar.gz``

    The uncompressed file is removed afterwards. Calling this again
    after success does nothing.

    :Call:
        >>> fgz = compress_archive(ftar, quiet=True)
    :Inputs:
        *ftar*: :class:`str`
            Name of tar file
        *quiet*: {``True``} | ``False``
            Option to suppress status update
    :Outputs:
        *fgz*: :class:`str`
            Name of compressed file
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Output file name
    fgz = ftar + ".gz"
    # Check if already done
    if os.path.isfile(fgz) and not os.path.isfile(ftar):
        return fgz
    # Make sure source is present
    assert_isfile(ftar)
    # Status update
    if not quiet:
        print(f"Compressing {os.path.basename(ftar)}")
    # Write to temp file so a partial .gz is never left behind
    ftmp = fgz + ".tmp"
    with open(ftar, "rb") as fsrc, open(ftmp, "wb") as fraw:
        # Fixed header time and no file name for reproducible output
        with gzip.GzipFile(
                filename="", mode="wb", fileobj=fraw, mtime=0) as fdst:
            shutil.copyfileobj(fsrc, fdst, CHUNK_SIZE)
    # Move into place
    os.replace(ftmp, fgz)
    os.remove(ftar)
    # Output
    return fgz


def write_archives(bins, outdir: str, compress=True, quiet=False) -> list:
    r"""Write one archive per bin, then compress them all

    :Call:
        >>> fnames = write_archives(bins, outdir, compress=True)
    :Inputs:
        *bins*: :class:`list`\ [:class:`lfspack.binpack.LFSBin`]
            Closed bins in order
        *outdir*: :class:`str`
            Folder in which to write archives (created if needed)
        *compress*: {``True``} | ``False``
            Whether to gzip each archive after all are written
        *quiet*: ``True`` | {``False``}
            Option to suppress status updates
    :Outputs:
        *fnames*: :class:`list`\ [:class:`str`]
            Absolute paths to final archives, ``pack-1`` first
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Initialize
    fnames = []
    # Nothing to do without bins; don't even create folder
    if len(bins) == 0:
        return fnames
    # Create folder
    if not os.path.isdir(outdir):
        os.makedirs(outdir)
    # Total for status updates
    nbin = len(bins)
    # Write archives
    for j, lfsbin in enumerate(bins):
        # Archive number and name
        n = j + 1
        ftar = os.path.join(outdir, genr8_archive_name(n, False))
        # Status update
        if not quiet:
            print(
                "Writing %s (%i/%i): %i objects, %s" %
                (os.path.basename(ftar), n, nbin,
                 len(lfsbin), format_size(lfsbin.size)))
        # Write it
        write_archive(lfsbin, ftar)
        fnames.append(ftar)
    # Compress as separate step
    if compress:
        fnames = [compress_archive(ftar, quiet=quiet) for ftar in fnames]
    # Output
    return fnames


def extract_archive(farchive: str, objdir: str, quiet=True) -> int:
    r"""Extract objects from one archive into an object store

    Objects already present with the right size are skipped. Others are
    written to a temporary file, checked against their SHA-256 OID, and
    moved into place.

    :Call:
        >>> n = extract_archive(farchive, objdir, quiet=True)
    :Inputs:
        *farchive*: :class:`str`
            Name of ``.tar.gz`` or ``.tar`` archive
        *objdir*: :class:`str`
            Object store, usually ``.git/lfs/objects``
        *quiet*: {``True``} | ``False``
            Option to suppress progress line
    :Outputs:
        *n*: :class:`int`
            Number of objects restored or already present
    :Raises:
        :class:`LFSPackArchiveError` if *farchive* is corrupt or
        contains unsafe member names
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
        * 2026-10-16 ``@lfspack``: v1.1; catch truncated gzip header
    """
    # Check for file
    if not os.path.isfile(farchive):
        raise LFSPackArchiveError(f"Archive '{farchive}' does not exist")
    # Number restored
    n = 0
    # Name for status updates
    fname8 = trunc8_fname(os.path.basename(farchive), 30)
    # Open archive, detecting compression
    try:
        tar = tarfile.open(farchive, "r:*")
    except (tarfile.TarError, EOFError, zlib.error, OSError) as err:
        raise LFSPackArchiveError(
            f"Cannot open archive '{farchive}': {err}") from err
    # Read members in stream order
    with tar:
        try:
            for member in tar:
                # Only files carry objects
                if not member.isfile():
                    continue
                # Destination
                name = _safe_member_name(member.name, farchive)
                fdst = os.path.join(objdir, *name.split("/"))
                # Restore
                _extract_member(tar, member, fdst)
                n += 1
                # Progress
                if not quiet:
                    sys.stdout.write(f"\rExtracting {fname8}: {n} objects")
                    sys.stdout.flush()
        except (tarfile.TarError, EOFError, zlib.error, OSError) as err:
            raise LFSPackArchiveError(
                f"Failed to extract archive '{farchive}' after "
                f"{n} objects: {err}") from err
    # Finish progress line
    if not quiet:
        sys.stdout.write("\n")
        sys.stdout.flush()
    # Output
    return n


def format_size(nbytes: int) -> str:
    r"""Format a byte count for humans, like ``"200.0 MiB"``

    :Call:
        >>> txt = format_size(nbytes)
    :Inputs:
        *nbytes*: :class:`int`
            Size in bytes
    :Outputs:
        *txt*: :class:`str`
            Formatted size
    :Versions:
        * 2026-09-21 ``@lfspack``: v1.0
    """
    # Loop through units
    for unit in ("B", "KiB", "MiB"):
        if nbytes < 1024:
            return f"{nbytes} B" if unit == "B" else f"{nbytes:.1f} {unit}"
        nbytes /= 1024
    # Anything bigger
    return f"{nbytes:.1f} GiB"


def _extract_member(tar, member, fdst: str):
    # Skip if content-addressed object already present
    if os.path.isfile(fdst) and os.path.getsize(fdst) == member.size:
        return
    # Create folder(s)
    fdir = os.path.dirname(fdst)
    os.makedirs(fdir, exist_ok=True)
    # Object name
    oid = os.path.basename(fdst)
    # Open member
    fsrc = tar.extractfile(member)
    # Temporary file in same folder so os.replace() is atomic
    fd, ftmp = tempfile.mkstemp(prefix=".lfspack-", dir=fdir)
    try:
        # Copy while hashing
        obj = hashlib.sha256()
        with os.fdopen(fd, "wb") as fp:
            while True:
                chunk = fsrc.read(CHUNK_SIZE)
                if not chunk:
                    break
                obj.update(chunk)
                fp.write(chunk)
        # Check contents of files named by their hash
        if REGEX_OID.match(oid) and obj.hexdigest() != oid:
            raise LFSPackArchiveError(
                f"Object '{member.name}' does not match its SHA-256 hash")
        # Usual permissions for LFS objects
        os.chmod(ftmp, 0o644)
        # Move into place
        os.replace(ftmp, fdst)
    finally:
        # Clean up on failure
        if os.path.isfile(ftmp):
            os.remove(ftmp)


def _safe_member_name(name: str, farchive: str) -> str:
    # Strip leading "./"
    while name.startswith("./"):
        name = name[2:]
    # Split into parts
    parts = name.split("/")
    # Check for absolute paths, drive letters, and ".." parts
    if (
            name == "" or name.startswith("/") or ":" in parts[0] or
            "\\" in name or ".." in parts or "" in parts):
        raise LFSPackArchiveError(
            f"Unsafe member name '{name}' in archive '{farchive}'")
    # Output
    return name


def _genr8_tarinfo(name: str, size: int) -> tarfile.TarInfo:
    tarinfo = tarfile.TarInfo(name=name)
    tarinfo.size = size
    tarinfo.mtime = 0
    tarinfo.uid = 0
    tarinfo.gid = 0
    tarinfo.uname = ""
    tarinfo.gname = ""
    tarinfo.mode = 0o644
    return tarinfo
