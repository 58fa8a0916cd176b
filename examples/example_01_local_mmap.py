"""Example 01: Memory Mapping Local Files.

This example demonstrates the local path:
- Mmap.from_url() on a plain path and on a file:// url
- Bytes-like access: len(), indexing, slicing, equality
- Zero-copy access through as_memoryview()
- Local paths never touch the cache or the network
"""

import tempfile
from pathlib import Path

from obstinate import Mmap


def main():
    """Run local mmap example."""
    print("=" * 80)
    print("EXAMPLE 01: MEMORY MAPPING LOCAL FILES")
    print("=" * 80)

    workdir = Path(tempfile.mkdtemp(prefix="obstinate-example-"))
    path = workdir / "data.csv"
    path.write_bytes(b"x,y\n1,2\n3,4\n")
    print(f"\n✓ Wrote {path}")

    # Section 1: Plain paths
    view = Mmap.from_url(str(path))
    with view:
        print(f"\nlen(view)     = {len(view)}")
        print(f"view[0]       = {view[0]!r}")
        print(f"view[4:7]     = {view[4:7]!r}")
        print(f"view == bytes = {view == path.read_bytes()}")

        # Section 2: Zero-copy access
        buf = view.as_memoryview()
        try:
            print(f"readonly      = {buf.readonly}")
            print(f"lines         = {bytes(buf).splitlines()}")
        finally:
            buf.release()

    # Section 3: file:// urls resolve to the same file
    with Mmap.from_url(path.as_uri()) as view:
        print(f"\nfile:// url   = {bytes(view)!r}")

    print("\n✓ Done")


if __name__ == "__main__":
    main()
