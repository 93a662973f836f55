"""Filesystem helpers for reading and atomically writing index artifacts.

Examples
--------
>>> from pathlib import Path
>>> atomic_write_text(Path("/tmp/searchdata.js"), "var searchData=[];\\n")
>>> read_text(Path("/tmp/searchdata.js"))
'var searchData=[];\\n'
"""

from __future__ import annotations

import tempfile
from pathlib import Path

__all__ = [
    "atomic_write_text",
    "ensure_dir",
    "read_text",
]


def ensure_dir(path: Path, *, exist_ok: bool = True) -> Path:
    """Create ``path`` and its parents, returning the directory path.

    Parameters
    ----------
    path : Path
        Directory to create.
    exist_ok : bool, optional
        Whether an existing directory is acceptable. Defaults to True.

    Returns
    -------
    Path
        The created (or pre-existing) directory.
    """
    path.mkdir(parents=True, exist_ok=exist_ok)
    return path


def read_text(path: Path, encoding: str = "utf-8") -> str:
    """Read text file contents with explicit encoding.

    Parameters
    ----------
    path : Path
        File path to read.
    encoding : str, optional
        Text encoding used to decode bytes. Defaults to "utf-8".

    Returns
    -------
    str
        File contents.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    UnicodeDecodeError
        If the file cannot be decoded with ``encoding``.
    """
    return path.read_text(encoding=encoding)


def atomic_write_text(path: Path, data: str, encoding: str = "utf-8") -> None:
    """Write ``data`` atomically using a sibling temporary file and rename.

    Readers either see the previous file or the complete new file, never a partial write.

    Parameters
    ----------
    path : Path
        Final file path. Parent directories are created if needed.
    data : str
        Text content to write.
    encoding : str, optional
        Text encoding. Defaults to "utf-8".

    Raises
    ------
    OSError
        If the temporary file cannot be created or renamed.
    """
    ensure_dir(path.parent)
    with tempfile.NamedTemporaryFile(
        mode="w",
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding=encoding,
        newline="",
    ) as temp_file:
        tmp_path = Path(temp_file.name)
        try:
            temp_file.write(data)
            temp_file.flush()
        except BaseException:
            temp_file.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
