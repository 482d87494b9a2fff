# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Compression utilities for gpuprofile input and output files.

Input files (counter descriptors, handle mappings, render-pass tables) may
be stored Zstd-compressed. Compression is detected by magic number, so it
works regardless of the file extension.
"""

import io
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO, Union

import zstandard as zstd

# Zstd magic number (little-endian): 0xFD2FB528
ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"


def detect_compression(filepath: Union[str, Path]) -> str:
    """
    Detect compression format of a file.

    Args:
        filepath: Path to the file to check

    Returns:
        Compression type: "zstd" or "none"

    Raises:
        FileNotFoundError: If file does not exist
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(filepath, "rb") as f:
        magic = f.read(4)
        if magic == ZSTD_MAGIC:
            return "zstd"

    return "none"


@contextmanager
def open_text_file(filepath: Union[str, Path]) -> Iterator[TextIO]:
    """
    Open a file for reading text, automatically handling compression.

    Args:
        filepath: Path to the file

    Yields:
        Text stream for reading the file contents

    Raises:
        FileNotFoundError: If file does not exist

    Example:
        >>> with open_text_file("descriptor.json.zst") as f:
        ...     data = json.load(f)
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    if detect_compression(filepath) == "zstd":
        dctx = zstd.ZstdDecompressor()
        with open(filepath, "rb") as binary_file:
            with dctx.stream_reader(binary_file) as reader:
                with io.TextIOWrapper(reader, encoding="utf-8") as text_stream:
                    yield text_stream
    else:
        with open(filepath, "r", encoding="utf-8") as f:
            yield f


def write_text_file(filepath: Union[str, Path], text: str, compress: bool = False) -> None:
    """
    Write text to a file, optionally Zstd-compressed.

    Parent directories are created as needed.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    if compress:
        cctx = zstd.ZstdCompressor()
        filepath.write_bytes(cctx.compress(text.encode("utf-8")))
    else:
        filepath.write_text(text, encoding="utf-8")
