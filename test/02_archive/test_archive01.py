
# Standard library
import io
import os
import tarfile

# Third-party
import pytest

# Local imports
from conftest import read_store, write_object
from lfspack.archive import (
    compress_archive,
    extract_archive,
    format_size,
    genr8_archive_name,
    list_archives,
    write_archive,
    write_archives)
from lfspack.binpack import pack_objects, scan_objects
from lfspack.lfspackerror import LFSPackArchiveError


# Create a store with objects of given sizes
def _make_store(objdir, *sizes):
    return [write_object(objdir, os.urandom(size)) for size in sizes]


# Write, compress, and restore into an empty store
def test_archive01(sandbox):
    srcdir = os.path.join(sandbox, "src")
    dstdir = os.path.join(sandbox, "dst")
    outdir = os.path.join(sandbox, "out")
    # Scaled-down version of 100, 100, 100, 300, 50 MB with 256 MB bins
    oids = _make_store(srcdir, 100, 100, 100, 300, 50)
    objects = scan_objects(srcdir)
    bins, count = pack_objects(objects, 256)
    assert count == 4
    assert len(bins) == 2
    # Write archives
    fnames = write_archives(bins, outdir, quiet=True)
    assert [os.path.basename(f) for f in fnames] == [
        "pack-1.tar.gz",
        "pack-2.tar.gz",
    ]
    # Uncompressed versions are gone
    assert sorted(os.listdir(outdir)) == ["pack-1.tar.gz", "pack-2.tar.gz"]
    assert list_archives(outdir) == ["pack-1.tar.gz", "pack-2.tar.gz"]
    # Uncompressed size of each archive's contents within bound
    for fname in fnames:
        with tarfile.open(fname, "r:gz") as tar:
            assert sum(m.size for m in tar.getmembers()) <= 256
    # Restore
    n = sum(extract_archive(f, dstdir) for f in fnames)
    assert n == 4
    # Only the big object is missing, everything else is byte-for-byte
    src = read_store(srcdir)
    dst = read_store(dstdir)
    big = [k for k, v in src.items() if len(v) == 300]
    assert len(big) == 1
    assert big[0] not in dst
    del src[big[0]]
    assert dst == src
    assert len(oids) == 5


# Extracting twice is the same as once
def test_archive02(sandbox):
    srcdir = os.path.join(sandbox, "src")
    dstdir = os.path.join(sandbox, "dst")
    _make_store(srcdir, 10, 20, 30)
    bins, _ = pack_objects(scan_objects(srcdir), 1000)
    fnames = write_archives(bins, os.path.join(sandbox, "out"), quiet=True)
    # Extract once
    extract_archive(fnames[0], dstdir)
    store1 = read_store(dstdir)
    # Again
    n = extract_archive(fnames[0], dstdir)
    assert n == 3
    assert read_store(dstdir) == store1
    # No temporary files left behind
    assert not any(".lfspack-" in k for k in store1)


# Empty input writes nothing
def test_archive03(sandbox):
    outdir = os.path.join(sandbox, "out")
    assert write_archives([], outdir) == []
    assert not os.path.exists(outdir)


# Identical bins give identical archives
def test_archive04(sandbox):
    srcdir = os.path.join(sandbox, "src")
    _make_store(srcdir, 64, 32)
    bins, _ = pack_objects(scan_objects(srcdir), 1000)
    f1 = write_archives(bins, os.path.join(sandbox, "a"), quiet=True)[0]
    f2 = write_archives(bins, os.path.join(sandbox, "b"), quiet=True)[0]
    with open(f1, "rb") as fp1, open(f2, "rb") as fp2:
        assert fp1.read() == fp2.read()


# Compression is idempotent
def test_compress01(sandbox):
    srcdir = os.path.join(sandbox, "src")
    _make_store(srcdir, 16)
    bins, _ = pack_objects(scan_objects(srcdir), 1000)
    ftar = os.path.join(sandbox, genr8_archive_name(1, False))
    write_archive(bins[0], ftar)
    fgz = compress_archive(ftar)
    assert fgz == ftar + ".gz"
    assert not os.path.isfile(ftar)
    # Second call does nothing
    mtime = os.path.getmtime(fgz)
    assert compress_archive(ftar) == fgz
    assert os.path.getmtime(fgz) == mtime


# Truncated archive fails but keeps objects from good archives
def test_corrupt01(sandbox):
    srcdir = os.path.join(sandbox, "src")
    dstdir = os.path.join(sandbox, "dst")
    _make_store(srcdir, 3000, 3000)
    bins, _ = pack_objects(scan_objects(srcdir), 4000)
    fnames = write_archives(bins, os.path.join(sandbox, "out"), quiet=True)
    assert len(fnames) == 2
    # Restore first archive
    extract_archive(fnames[0], dstdir)
    good = read_store(dstdir)
    # Chop the second one in half
    with open(fnames[1], "rb") as fp:
        data = fp.read()
    with open(fnames[1], "wb") as fp:
        fp.write(data[:len(data) // 2])
    with pytest.raises(LFSPackArchiveError):
        extract_archive(fnames[1], dstdir)
    # First archive's object is intact, nothing partial written
    assert read_store(dstdir) == good
    # Not an archive at all
    fbad = os.path.join(sandbox, "pack-3.tar.gz")
    with open(fbad, "wb") as fp:
        fp.write(b"not a tar file")
    with pytest.raises(LFSPackArchiveError):
        extract_archive(fbad, dstdir)
    # Gzip header with nothing after it
    fbad = os.path.join(sandbox, "pack-4.tar.gz")
    with open(fbad, "wb") as fp:
        fp.write(b"\x1f\x8b")
    with pytest.raises(LFSPackArchiveError):
        extract_archive(fbad, dstdir)
    # Missing archive
    with pytest.raises(LFSPackArchiveError):
        extract_archive(os.path.join(sandbox, "pack-9.tar.gz"), dstdir)


# Unsafe member names and content not matching its hash
def test_unsafe01(sandbox):
    dstdir = os.path.join(sandbox, "dst")
    # Archive with a member escaping the store
    fevil = os.path.join(sandbox, "evil.tar")
    with tarfile.open(fevil, "w") as tar:
        tarinfo = tarfile.TarInfo("../escape")
        tarinfo.size = 4
        tar.addfile(tarinfo, io.BytesIO(b"evil"))
    with pytest.raises(LFSPackArchiveError):
        extract_archive(fevil, dstdir)
    assert not os.path.exists(os.path.join(sandbox, "escape"))
    # Archive with an object whose contents don't match its OID
    oid = "0" * 64
    fbad = os.path.join(sandbox, "bad.tar")
    with tarfile.open(fbad, "w") as tar:
        tarinfo = tarfile.TarInfo(f"00/00/{oid}")
        tarinfo.size = 4
        tar.addfile(tarinfo, io.BytesIO(b"data"))
    with pytest.raises(LFSPackArchiveError):
        extract_archive(fbad, dstdir)
    assert read_store(dstdir) == {}


# Listing prefers compressed archives and sorts numerically
def test_list01(sandbox):
    for fname in (
            "pack-10.tar.gz", "pack-2.tar", "pack-2.tar.gz",
            "pack-1.tar", "other.tar.gz", "boot.sh"):
        open(fname, "w").close()
    assert list_archives(sandbox) == [
        "pack-1.tar",
        "pack-2.tar.gz",
        "pack-10.tar.gz",
    ]


def test_format_size01():
    assert format_size(512) == "512 B"
    assert format_size(2048) == "2.0 KiB"
    assert format_size(200 * 1024 * 1024) == "200.0 MiB"
    assert format_size(3 * 1024**3) == "3.0 GiB"
