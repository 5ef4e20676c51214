"""
Fixed width field reading over an in-memory buffer or a seekable binary file.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging
import os
import re
import threading
from typing import Union, BinaryIO, Optional

from nitfgnr.errors import TruncatedInput, MalformedHeader


logger = logging.getLogger(__name__)

_DIGITS = re.compile(r'^[0-9]+$')


def parse_ascii_int(
        value: Union[bytes, str],
        name: Optional[str] = None,
        offset: Optional[int] = None) -> int:
    """
    Interpret a fixed width NITF integer field. Padding spaces are trimmed,
    and anything other than ASCII digits remaining (including a sign) is rejected.

    Parameters
    ----------
    value : bytes|str
    name : None|str
        The field name, for error reporting.
    offset : None|int
        The field offset, for error reporting.

    Returns
    -------
    int

    Raises
    ------
    MalformedHeader
    """

    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            value = bytes(value).decode('ascii')
        except UnicodeDecodeError:
            raise MalformedHeader(
                'Non-ASCII content {!r} in integer field'.format(bytes(value)),
                field=name, offset=offset)
    elif not isinstance(value, str):
        raise TypeError('Integer field value requires bytes or str, got {}'.format(type(value)))

    stripped = value.strip(' ')
    if _DIGITS.match(stripped) is None:
        raise MalformedHeader(
            'Integer field content {!r} is not a non-negative decimal integer'.format(value),
            field=name, offset=offset)
    return int(stripped)


class ByteCursor(object):
    """
    Offset tracking reader over a byte source. The source is either a bytes-like
    object, or a seekable binary file object opened for reading.

    Reads against a file object go through a lock, so that a single cursor may
    be shared between threads.
    """

    __slots__ = ('_buffer', '_file_object', '_size', '_position', '_lock')

    def __init__(self, source: Union[bytes, bytearray, memoryview, BinaryIO]):
        """

        Parameters
        ----------
        source : bytes|bytearray|memoryview|BinaryIO
        """

        self._buffer = None
        self._file_object = None
        self._position = 0
        self._lock = threading.Lock()

        if isinstance(source, (bytes, bytearray, memoryview)):
            buffer = memoryview(source)
            if buffer.format != 'B' or buffer.ndim != 1:
                buffer = buffer.cast('B')
            self._buffer = buffer
            self._size = buffer.nbytes
        elif callable(getattr(source, 'read', None)) and callable(getattr(source, 'seek', None)) and \
                callable(getattr(source, 'tell', None)):
            self._file_object = source
            current = source.tell()
            source.seek(0, os.SEEK_END)
            self._size = source.tell()
            source.seek(current, os.SEEK_SET)
        else:
            raise TypeError(
                'ByteCursor requires a bytes-like object or a seekable binary '
                'file object, got {}'.format(type(source)))

    @property
    def size(self) -> int:
        """
        int: The total size in bytes of the byte source.
        """

        return self._size

    def position(self) -> int:
        """
        The current offset of the cursor.

        Returns
        -------
        int
        """

        return self._position

    def remaining(self) -> int:
        """
        The number of bytes between the current position and the end of the source.

        Returns
        -------
        int
        """

        return max(0, self._size - self._position)

    def seek(self, offset: int) -> None:
        """
        Move the cursor to the given absolute offset.

        Parameters
        ----------
        offset : int
        """

        offset = int(offset)
        if offset < 0:
            raise ValueError('Cannot seek to negative offset {}'.format(offset))
        if offset > self._size:
            raise TruncatedInput(
                'Seek beyond the end of a source of {} bytes'.format(self._size), offset=offset)
        self._position = offset

    def read_at(self, offset: int, length: int, name: Optional[str] = None) -> bytes:
        """
        Read exactly `length` bytes at the given absolute offset, without
        moving the cursor.

        Parameters
        ----------
        offset : int
        length : int
        name : None|str
            The name of the thing being read, for error reporting.

        Returns
        -------
        bytes

        Raises
        ------
        TruncatedInput
        """

        offset = int(offset)
        length = int(length)
        if length < 0:
            raise ValueError('Cannot read a negative number of bytes')
        if offset < 0 or offset + length > self._size:
            raise TruncatedInput(
                'Requested {} bytes, but only {} are available'.format(
                    length, max(0, self._size - offset)),
                field=name, offset=offset)
        if length == 0:
            return b''

        if self._buffer is not None:
            return self._buffer[offset:offset+length].tobytes()

        with self._lock:
            self._file_object.seek(offset, os.SEEK_SET)
            data = self._file_object.read(length)
        if len(data) != length:
            raise TruncatedInput(
                'Requested {} bytes, but the file returned {}'.format(length, len(data)),
                field=name, offset=offset)
        return data

    def read_fixed(self, length: int, name: Optional[str] = None) -> bytes:
        """
        Read exactly `length` bytes from the current position, and advance.

        Parameters
        ----------
        length : int
        name : None|str

        Returns
        -------
        bytes

        Raises
        ------
        TruncatedInput
        """

        data = self.read_at(self._position, length, name=name)
        self._position += length
        return data

    def read_ascii(self, length: int, name: Optional[str] = None) -> str:
        """
        Read a fixed width text field from the current position, and advance.

        Parameters
        ----------
        length : int
        name : None|str

        Returns
        -------
        str
        """

        start = self._position
        data = self.read_fixed(length, name=name)
        try:
            return data.decode('ascii')
        except UnicodeDecodeError:
            raise MalformedHeader('Non-ASCII content {!r}'.format(data), field=name, offset=start)

    def read_ascii_int(self, length: int, name: Optional[str] = None) -> int:
        """
        Read a fixed width ASCII integer field from the current position, and advance.

        Parameters
        ----------
        length : int
        name : None|str

        Returns
        -------
        int

        Raises
        ------
        TruncatedInput
        MalformedHeader
        """

        start = self._position
        return parse_ascii_int(self.read_fixed(length, name=name), name=name, offset=start)
