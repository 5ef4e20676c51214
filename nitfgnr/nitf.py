"""
Module laying out the basic functionality for parsing a NITF file header, and
for locating and extracting its segments.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging
import os
from collections import OrderedDict
from contextlib import contextmanager
from typing import Union, BinaryIO, Optional, Tuple, List, Iterator

from nitfgnr.cursor import ByteCursor
from nitfgnr.errors import NitfError, MalformedHeader, StructuralInconsistency
from nitfgnr.file_utils import is_file_like, is_path_like
from nitfgnr.segments import SegmentCategory, SegmentDescriptor, SegmentIndex, build_index

from nitfgnr.nitf_elements.base import NITFElement
from nitfgnr.nitf_elements.nitf_head import NITFHeader, SUPPORTED_PROFILES
from nitfgnr.nitf_elements.image import ImageSegmentHeader
from nitfgnr.nitf_elements.graphics import GraphicsSegmentHeader
from nitfgnr.nitf_elements.text import TextSegmentHeader
from nitfgnr.nitf_elements.des import DataExtensionHeader
from nitfgnr.nitf_elements.res import ReservedExtensionHeader


logger = logging.getLogger(__name__)

# the fixed offsets of the file length and header length fields
FL_OFFSET = 342
HL_OFFSET = 354
# the length of a file header with no segments, and empty user and extended headers
MINIMUM_HEADER_LENGTH = 388
# the largest read performed when streaming segment data
DEFAULT_CHUNK_SIZE = 4*1024*1024

# versions which are recognized, but use a different header layout
_UNSUPPORTED_VERSIONS = ('NITF02.00', 'NITF01.10')

_SUBHEADER_TYPES = OrderedDict([
    (SegmentCategory.IMAGE, ImageSegmentHeader),
    (SegmentCategory.GRAPHIC, GraphicsSegmentHeader),
    (SegmentCategory.TEXT, TextSegmentHeader),
    (SegmentCategory.DES, DataExtensionHeader),
    (SegmentCategory.RES, ReservedExtensionHeader)])

_JSON_KEYS = OrderedDict([
    (SegmentCategory.IMAGE, 'Image_Subheaders'),
    (SegmentCategory.GRAPHIC, 'Graphics_Subheaders'),
    (SegmentCategory.TEXT, 'Text_Subheaders'),
    (SegmentCategory.DES, 'DES_Subheaders'),
    (SegmentCategory.RES, 'RES_Subheaders')])


def parse_header(cursor: ByteCursor) -> NITFHeader:
    """
    Parse the NITF file header from the start of the byte source.

    Parameters
    ----------
    cursor : ByteCursor

    Returns
    -------
    NITFHeader

    Raises
    ------
    TruncatedInput
        If the source ends before the header does.
    MalformedHeader
        If this is not a supported NITF version, or any header field violates
        the format constraints.
    """

    cursor.seek(0)
    tag = cursor.read_fixed(9, name='FHDR/FVER')
    try:
        version = tag.decode('ascii')
    except UnicodeDecodeError:
        raise MalformedHeader('Not a NITF file, got initial bytes {!r}'.format(tag), field='FHDR', offset=0)

    profile, vers = version[:4], version[4:]
    if profile not in SUPPORTED_PROFILES:
        raise MalformedHeader('Not a NITF file, got initial bytes {!r}'.format(tag), field='FHDR', offset=0)
    if vers != SUPPORTED_PROFILES[profile]:
        if version in _UNSUPPORTED_VERSIONS:
            raise MalformedHeader('Unsupported NITF version {}'.format(version), field='FVER', offset=4)
        raise MalformedHeader('Unrecognized version {}'.format(version), field='FVER', offset=4)

    cursor.seek(FL_OFFSET)
    file_length = cursor.read_ascii_int(12, name='FL')
    header_length = cursor.read_ascii_int(6, name='HL')
    if header_length < MINIMUM_HEADER_LENGTH:
        raise MalformedHeader(
            'Header length {} is less than the minimum possible {}'.format(header_length, MINIMUM_HEADER_LENGTH),
            field='HL', offset=HL_OFFSET)
    logger.debug('Parsing {} header of length {} for file of length {}'.format(version, header_length, file_length))

    header_bytes = cursor.read_at(0, header_length, name='file header')
    try:
        header = NITFHeader.from_bytes(header_bytes, 0)
    except NitfError:
        raise
    except (ValueError, TypeError) as e:
        raise MalformedHeader('Failed parsing the file header with error {}'.format(e))

    if header.get_bytes_length() != header_length:
        raise MalformedHeader(
            'Stated header length is {}, while the interpreted header length is {}'.format(
                header_length, header.get_bytes_length()),
            field='HL', offset=HL_OFFSET)
    cursor.seek(header_length)
    return header


class NitfFile(object):
    """
    A parsed NITF file: the byte source, its file header, and its segment index.
    This is constructed once, then queried for segment bytes as many times
    as required. It is never modified after construction.
    """

    __slots__ = (
        '_file_name', '_file_object', '_close_after', '_cursor',
        '_nitf_header', '_index', '_strict', '_inconsistencies')

    def __init__(
            self,
            file_object: Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO],
            strict: bool = True):
        """

        Parameters
        ----------
        file_object : str|os.PathLike|bytes|bytearray|memoryview|BinaryIO
            file name for a NITF file, the file contents, or file like object
            opened in binary mode.
        strict : bool
            If `True`, disagreement between the header arithmetic and the file
            size raises :class:`StructuralInconsistency`. Otherwise, it is logged
            and recorded in :attr:`inconsistencies`.
        """

        self._file_name = None
        self._file_object = None
        self._close_after = False
        self._strict = bool(strict)
        self._inconsistencies = []

        if is_path_like(file_object):
            file_object = os.fspath(file_object)
            if not os.path.isfile(file_object):
                raise FileNotFoundError('Path {} is not a file'.format(file_object))
            self._file_name = file_object
            self._file_object = open(file_object, 'rb')
            self._close_after = True
            source = self._file_object
        elif isinstance(file_object, (bytes, bytearray, memoryview)):
            self._file_name = '<bytes>'
            source = file_object
        elif is_file_like(file_object):
            self._file_object = file_object
            if hasattr(file_object, 'name') and isinstance(file_object.name, str):
                self._file_name = file_object.name
            else:
                self._file_name = '<file like object>'
            source = file_object
        else:
            raise TypeError(
                'file_object is required to be a path, a bytes-like object, or a file like object. '
                'Got type {}'.format(type(file_object)))

        try:
            self._cursor = ByteCursor(source)
            self._nitf_header = parse_header(self._cursor)
            self._index = build_index(self._nitf_header, strict=self._strict)
            if self._index.end_offset != self._nitf_header.FL:
                self._inconsistencies.append(
                    'segments end at {}, but the file length is {}'.format(
                        self._index.end_offset, self._nitf_header.FL))
            self._check_size()
        except Exception:
            self.close()
            raise

    def _check_size(self) -> None:
        declared = self._nitf_header.FL
        actual = self._cursor.size
        if declared == actual:
            return
        msg = 'File {} has declared length {}, but the actual size is {}'.format(self._file_name, declared, actual)
        if self._strict:
            raise StructuralInconsistency(msg, offset=actual)
        logger.warning(msg)
        self._inconsistencies.append(msg)

    @property
    def file_name(self) -> Optional[str]:
        """
        None|str: the file name, which may not be useful if the input was based
        on a file like object or bytes
        """

        return self._file_name

    @property
    def nitf_header(self) -> NITFHeader:
        """
        NITFHeader: the nitf file header object
        """

        return self._nitf_header

    @property
    def header(self) -> NITFHeader:
        """
        NITFHeader: an alias for :attr:`nitf_header`
        """

        return self._nitf_header

    @property
    def index(self) -> SegmentIndex:
        """
        SegmentIndex: the segment index
        """

        return self._index

    @property
    def cursor(self) -> ByteCursor:
        """
        ByteCursor: the cursor over the byte source
        """

        return self._cursor

    @property
    def strict(self) -> bool:
        """
        bool: Are structural inconsistencies raised, rather than recorded?
        """

        return self._strict

    @property
    def inconsistencies(self) -> Tuple[str, ...]:
        """
        Tuple[str, ...]: The structural inconsistencies tolerated in non-strict mode.
        """

        return tuple(self._inconsistencies)

    @property
    def version(self) -> str:
        """
        str: The profile and version tag, e.g. :code:`NITF02.10`.
        """

        return self._nitf_header.version

    @property
    def header_length(self) -> int:
        """
        int: The file header length.
        """

        return self._nitf_header.HL

    @property
    def file_length(self) -> int:
        """
        int: The declared file length.
        """

        return self._nitf_header.FL

    @property
    def size(self) -> int:
        """
        int: The actual size of the byte source.
        """

        return self._cursor.size

    def count(self, category: Union[str, SegmentCategory]) -> int:
        """
        The number of segments of the given category.

        Parameters
        ----------
        category : str|SegmentCategory

        Returns
        -------
        int
        """

        return self._index.count(category)

    def list(self, category: Union[str, SegmentCategory]) -> Tuple[SegmentDescriptor, ...]:
        """
        The segment descriptors of the given category, in file order.

        Parameters
        ----------
        category : str|SegmentCategory

        Returns
        -------
        Tuple[SegmentDescriptor, ...]
        """

        return self._index.list(category)

    def descriptor(self, category: Union[str, SegmentCategory], index: int) -> SegmentDescriptor:
        """
        The segment descriptor for the given category and index.

        Parameters
        ----------
        category : str|SegmentCategory
        index : int

        Returns
        -------
        SegmentDescriptor

        Raises
        ------
        IndexOutOfRange
        """

        return self._index.get(category, index)

    def extract_file_header(self) -> bytes:
        """
        Fetches the file header bytes.

        Returns
        -------
        bytes
        """

        return self._cursor.read_at(0, self._nitf_header.HL, name='file header')

    def extract_header(self, descriptor: SegmentDescriptor) -> bytes:
        """
        Fetches the subheader bytes for the given segment.

        Parameters
        ----------
        descriptor : SegmentDescriptor

        Returns
        -------
        bytes
        """

        return self._cursor.read_at(
            descriptor.offset, descriptor.header_length,
            name='{} subheader {}'.format(descriptor.category.value, descriptor.index))

    def extract_data(self, descriptor: SegmentDescriptor) -> bytes:
        """
        Fetches the data bytes for the given segment.

        Parameters
        ----------
        descriptor : SegmentDescriptor

        Returns
        -------
        bytes
        """

        return self._cursor.read_at(
            descriptor.data_offset, descriptor.data_length,
            name='{} data {}'.format(descriptor.category.value, descriptor.index))

    def iter_data(self, descriptor: SegmentDescriptor, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """
        Yields the data bytes for the given segment in chunks of at most `chunk_size`.

        Parameters
        ----------
        descriptor : SegmentDescriptor
        chunk_size : int

        Yields
        ------
        bytes
        """

        yield from self.iter_range(descriptor.data_offset, descriptor.data_length, chunk_size=chunk_size)

    def iter_range(self, offset: int, length: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """
        Yields the given byte range of the source in chunks of at most `chunk_size`.

        Parameters
        ----------
        offset : int
        length : int
        chunk_size : int

        Yields
        ------
        bytes
        """

        chunk_size = int(chunk_size)
        if chunk_size < 1:
            raise ValueError('chunk_size must be positive, got {}'.format(chunk_size))
        position = int(offset)
        end = position + int(length)
        while position < end:
            this_size = min(chunk_size, end - position)
            yield self._cursor.read_at(position, this_size)
            position += this_size

    def write_range(
            self,
            offset: int,
            length: int,
            out_file: Union[str, os.PathLike],
            chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        """
        Stream the given byte range of the source to a new file. If reading
        fails part way, the partially written file is removed before the
        error propagates.

        Parameters
        ----------
        offset : int
        length : int
        out_file : str|os.PathLike
        chunk_size : int

        Raises
        ------
        NitfError
        """

        try:
            with open(out_file, 'wb') as fo:
                for chunk in self.iter_range(offset, length, chunk_size=chunk_size):
                    fo.write(chunk)
        except NitfError:
            if os.path.exists(out_file):
                os.remove(out_file)
            raise

    def parse_subheader(self, category: Union[str, SegmentCategory], index: int) -> NITFElement:
        """
        Parse the subheader for the given category and index.

        Parameters
        ----------
        category : str|SegmentCategory
        index : int

        Returns
        -------
        ImageSegmentHeader|GraphicsSegmentHeader|TextSegmentHeader|DataExtensionHeader|ReservedExtensionHeader

        Raises
        ------
        IndexOutOfRange
        MalformedHeader
        TruncatedInput
        """

        descriptor = self.descriptor(category, index)
        the_type = _SUBHEADER_TYPES[descriptor.category]
        the_bytes = self.extract_header(descriptor)
        try:
            out = the_type.from_bytes(the_bytes, 0)
        except NitfError:
            raise
        except (ValueError, TypeError) as e:
            raise MalformedHeader(
                'Failed parsing subheader with error {}'.format(e),
                category=descriptor.category.value, index=descriptor.index, offset=descriptor.offset)
        if out.get_bytes_length() != descriptor.header_length:
            logger.warning(
                'Stated {} subheader {} length is {}, while the interpreted length is {}'.format(
                    descriptor.category.label, descriptor.index,
                    descriptor.header_length, out.get_bytes_length()))
        return out

    def parse_subheaders(self, category: Union[str, SegmentCategory]) -> List[NITFElement]:
        """
        Parse every subheader of the given category.

        Parameters
        ----------
        category : str|SegmentCategory

        Returns
        -------
        List[NITFElement]
        """

        return [self.parse_subheader(category, i) for i in range(self.count(category))]

    def get_headers_json(self) -> dict:
        """
        Get a json (i.e. dict) representation of the NITF header elements.

        Returns
        -------
        dict
        """

        out = OrderedDict([('header', self._nitf_header.to_json()), ])
        for category, key in _JSON_KEYS.items():
            if self.count(category) > 0:
                out[key] = [entry.to_json() for entry in self.parse_subheaders(category)]
        return out

    def close(self) -> None:
        """
        Close the underlying file, if it was opened here.
        """

        if self._close_after:
            self._close_after = False
            self._file_object.close()

    def __enter__(self):
        return self

    def __exit__(self, exception_type, exception_value, traceback):
        self.close()

    def __del__(self):
        if getattr(self, '_close_after', False):
            self._close_after = False
            # noinspection PyBroadException
            try:
                self._file_object.close()
            except Exception:
                pass


@contextmanager
def open_nitf(
        file_object: Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO, NitfFile],
        strict: bool = True) -> Iterator[NitfFile]:
    """
    Context manager yielding a :class:`NitfFile` for the given input. An already
    constructed :class:`NitfFile` is passed through untouched, otherwise the
    one constructed here is closed on exit.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|bytearray|memoryview|BinaryIO|NitfFile
    strict : bool

    Yields
    ------
    NitfFile
    """

    if isinstance(file_object, NitfFile):
        yield file_object
        return

    nitf_file = NitfFile(file_object, strict=strict)
    try:
        yield nitf_file
    finally:
        nitf_file.close()
