"""
Common functionality for recognizing file inputs.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import os
from typing import Any, Union, BinaryIO, Optional, Tuple


def is_file_like(the_input: Any) -> bool:
    """
    Does the input behave as a seekable file object? That is, are `read`, `seek`
    and `tell` all callable attributes? The open mode is not inspected.

    Parameters
    ----------
    the_input

    Returns
    -------
    bool
    """

    return all(callable(getattr(the_input, name, None)) for name in ('read', 'seek', 'tell'))


def is_path_like(the_input: Any) -> bool:
    """
    Is the input a string or an :class:`os.PathLike` path?

    Parameters
    ----------
    the_input

    Returns
    -------
    bool
    """

    return isinstance(the_input, (str, os.PathLike))


def _read_prefix(source: Union[str, os.PathLike, BinaryIO, bytes], size: int) -> Optional[bytes]:
    """
    The first `size` bytes of the source, or `None` if the source is shorter,
    missing, or of unrecognized type. A file object keeps its position.
    """

    if isinstance(source, (bytes, bytearray, memoryview)):
        prefix = bytes(source[:size])
    elif is_file_like(source):
        position = source.tell()
        try:
            source.seek(0, os.SEEK_SET)
            prefix = source.read(size)
        finally:
            source.seek(position, os.SEEK_SET)
    elif is_path_like(source) and os.path.isfile(source):
        with open(source, 'rb') as fi:
            prefix = fi.read(size)
    else:
        return None
    return prefix if len(prefix) == size else None


def is_nitf(
        file_name: Union[str, os.PathLike, BinaryIO, bytes],
        return_version=False) -> Union[bool, Tuple[bool, Optional[str]]]:
    """
    Test whether the given input is a NITF (or NSIF) file, using only the nine
    byte profile and version tag at its start.

    Parameters
    ----------
    file_name : str|os.PathLike|BinaryIO|bytes
    return_version : bool

    Returns
    -------
    is_nitf_file: bool
    nitf_version: None|str
        Only when `return_version=True`. The tag, e.g. :code:`NITF02.10`, or
        `None` when this is not a NITF file.
    """

    tag = _read_prefix(file_name, 9)
    version = None
    if tag is not None and tag[:4] in (b'NITF', b'NSIF'):
        try:
            version = tag.decode('ascii')
        except UnicodeDecodeError:
            version = None

    if return_version:
        return version is not None, version
    return version is not None
