"""
Locating and extracting the JPEG 2000 data embedded in NITF image segments.
The data is located only, never decoded.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging
import os
import struct
from typing import Union, BinaryIO, List

from nitfgnr.errors import NitfError, MalformedHeader, NotJp2Compressed, TruncatedInput
from nitfgnr.nitf import NitfFile, open_nitf
from nitfgnr.segments import SegmentCategory


logger = logging.getLogger(__name__)

# the JP2 signature box, which must open a JP2 file
JP2_SIGNATURE = b'\x00\x00\x00\x0cjP  \r\n\x87\n'
# the start of codestream marker, which opens a bare codestream
SOC_MARKER = b'\xff\x4f'
CODESTREAM_BOX = b'jp2c'


class JP2Location(object):
    """
    The location of the JPEG 2000 data in a given image segment.
    """

    __slots__ = ('_image_index', '_offset', '_length', '_file_type')

    def __init__(self, image_index: int, offset: int, length: int, file_type: str):
        """

        Parameters
        ----------
        image_index : int
        offset : int
            The absolute offset in the NITF file.
        length : int
        file_type : str
            One of `'jp2'` (JP2 file format) or `'j2k'` (bare codestream).
        """

        if file_type not in ('jp2', 'j2k'):
            raise ValueError('file_type must be one of "jp2" or "j2k", got {}'.format(file_type))
        self._image_index = int(image_index)
        self._offset = int(offset)
        self._length = int(length)
        self._file_type = file_type

    @property
    def image_index(self) -> int:
        """
        int: The image segment index.
        """

        return self._image_index

    @property
    def offset(self) -> int:
        """
        int: The absolute offset of the JPEG 2000 data.
        """

        return self._offset

    @property
    def length(self) -> int:
        """
        int: The length of the JPEG 2000 data in bytes.
        """

        return self._length

    @property
    def file_type(self) -> str:
        """
        str: `'jp2'` for the JP2 file format, `'j2k'` for a bare codestream.
        """

        return self._file_type

    @property
    def extension(self) -> str:
        """
        str: The file extension appropriate for the extracted data.
        """

        return '.' + self._file_type

    def __eq__(self, other):
        if not isinstance(other, JP2Location):
            return NotImplemented
        return (self._image_index, self._offset, self._length, self._file_type) == \
            (other._image_index, other._offset, other._length, other._file_type)

    def __hash__(self):
        return hash((self._image_index, self._offset, self._length, self._file_type))

    def __repr__(self):
        return 'JP2Location(image_index={}, offset={}, length={}, file_type={!r})'.format(
            self._image_index, self._offset, self._length, self._file_type)


def _walk_boxes(nitf_file: NitfFile, start: int, end: int, image_index: int) -> int:
    """
    Walk the top level boxes of a JP2 file occupying `[start, end)`, and
    return the offset following the contiguous codestream box.
    """

    cursor = nitf_file.cursor
    position = start
    while position < end:
        if end - position < 8:
            raise MalformedHeader(
                'Incomplete box header at the end of the JPEG 2000 data',
                category='image', index=image_index, offset=position)
        box_length, box_id = struct.unpack('>I4s', cursor.read_at(position, 8))
        if box_length == 0:
            # the box extends to the end of the data
            num_bytes = end - position
        elif box_length == 1:
            # the length of the box is in the XL field, a 64-bit value
            if end - position < 16:
                raise MalformedHeader(
                    'Incomplete extended box length for box {!r}'.format(box_id),
                    category='image', index=image_index, offset=position)
            num_bytes, = struct.unpack('>Q', cursor.read_at(position+8, 8))
            if num_bytes < 16:
                raise MalformedHeader(
                    'Box {!r} has invalid extended length {}'.format(box_id, num_bytes),
                    category='image', index=image_index, offset=position)
        elif box_length < 8:
            raise MalformedHeader(
                'Box {!r} has invalid length {}'.format(box_id, box_length),
                category='image', index=image_index, offset=position)
        else:
            num_bytes = box_length

        if position + num_bytes > end:
            raise MalformedHeader(
                'Box {!r} of length {} runs past the end of the image data'.format(box_id, num_bytes),
                category='image', index=image_index, offset=position)
        position += num_bytes
        if box_id == CODESTREAM_BOX:
            return position

    raise MalformedHeader(
        'JP2 file has no contiguous codestream box', category='image', index=image_index, offset=start)


def _locate(nitf_file: NitfFile, image_index: int) -> JP2Location:
    descriptor = nitf_file.descriptor(SegmentCategory.IMAGE, image_index)
    subheader = nitf_file.parse_subheader(SegmentCategory.IMAGE, image_index)
    if not subheader.is_jpeg2000:
        raise NotJp2Compressed(
            'Image segment has compression {}, not JPEG 2000'.format(subheader.IC),
            category='image', index=image_index, field='IC')

    cursor = nitf_file.cursor
    start = descriptor.data_offset
    end = descriptor.end
    if subheader.IC == 'M8':
        # the image data mask table precedes the codestream
        if descriptor.data_length < 4:
            raise TruncatedInput(
                'Image data is too short for the image data mask table',
                category='image', index=image_index, offset=start)
        mask_length, = struct.unpack('>I', cursor.read_at(start, 4))
        if mask_length > descriptor.data_length:
            raise MalformedHeader(
                'Image data mask table length {} exceeds the image data length {}'.format(
                    mask_length, descriptor.data_length),
                category='image', index=image_index, field='IMDATOFF', offset=start)
        start += mask_length

    available = end - start
    if available >= len(JP2_SIGNATURE) and cursor.read_at(start, len(JP2_SIGNATURE)) == JP2_SIGNATURE:
        stop = _walk_boxes(nitf_file, start, end, image_index)
        return JP2Location(image_index, start, stop - start, 'jp2')
    if available >= len(SOC_MARKER) and cursor.read_at(start, len(SOC_MARKER)) == SOC_MARKER:
        return JP2Location(image_index, start, available, 'j2k')
    raise MalformedHeader(
        'Image data does not begin with a JP2 signature or a codestream marker',
        category='image', index=image_index, offset=start)


def locate_jp2(
        file_object: Union[str, os.PathLike, bytes, BinaryIO, NitfFile],
        image_index: int) -> JP2Location:
    """
    Locate the JPEG 2000 data in the given image segment.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile
    image_index : int

    Returns
    -------
    JP2Location

    Raises
    ------
    IndexOutOfRange
    NotJp2Compressed
    MalformedHeader
    """

    with open_nitf(file_object) as nitf_file:
        return _locate(nitf_file, image_index)


def locate_all_jp2(file_object: Union[str, os.PathLike, bytes, BinaryIO, NitfFile]) -> List[JP2Location]:
    """
    Locate the JPEG 2000 data in every image segment. Image segments which are
    not JPEG 2000 compressed, or whose data cannot be located, are logged and skipped.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile

    Returns
    -------
    List[JP2Location]
    """

    out = []
    with open_nitf(file_object) as nitf_file:
        for image_index in range(nitf_file.count(SegmentCategory.IMAGE)):
            try:
                out.append(_locate(nitf_file, image_index))
            except NotJp2Compressed as e:
                logger.info('Skipping image segment {}. {}'.format(image_index, e))
            except NitfError as e:
                logger.warning('Failed locating JPEG 2000 data in image segment {}. {}'.format(image_index, e))
    return out


def read_jp2(file_object: Union[str, os.PathLike, bytes, BinaryIO, NitfFile], location: JP2Location) -> bytes:
    """
    Fetch the bytes for the given JPEG 2000 location.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile
    location : JP2Location

    Returns
    -------
    bytes
    """

    with open_nitf(file_object) as nitf_file:
        return nitf_file.cursor.read_at(
            location.offset, location.length, name='JPEG 2000 data {}'.format(location.image_index))


def extract_jp2_index(file_object: Union[str, os.PathLike, bytes, BinaryIO, NitfFile], image_index: int) -> bytes:
    """
    Fetch the JPEG 2000 data from the given image segment.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile
    image_index : int

    Returns
    -------
    bytes

    Raises
    ------
    IndexOutOfRange
    NotJp2Compressed
    MalformedHeader
    """

    with open_nitf(file_object) as nitf_file:
        return read_jp2(nitf_file, _locate(nitf_file, image_index))


def extract_all_jp2(
        file_object: Union[str, os.PathLike, bytes, BinaryIO, NitfFile],
        out_directory: Union[str, os.PathLike],
        prefix: str = '') -> List[str]:
    """
    Write the JPEG 2000 data of every image segment in which it can be located
    to its own file `<prefix><image index>.jp2` (or `.j2k` for a bare codestream)
    in the output directory. An image whose data cannot be read is logged and
    skipped, and leaves no file behind.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile
    out_directory : str|os.PathLike
        Created, if it does not exist.
    prefix : str

    Returns
    -------
    List[str]
        The paths of the files written.
    """

    out_directory = os.fspath(out_directory)
    if not os.path.isdir(out_directory):
        os.makedirs(out_directory)

    written = []
    with open_nitf(file_object) as nitf_file:
        for location in locate_all_jp2(nitf_file):
            out_file = os.path.join(out_directory, '{}{}{}'.format(prefix, location.image_index, location.extension))
            try:
                nitf_file.write_range(location.offset, location.length, out_file)
            except NitfError as e:
                logger.warning(
                    'Failed writing JPEG 2000 data for image {} to {}. {}'.format(location.image_index, out_file, e))
                continue
            logger.info('Wrote JPEG 2000 data for image {} to {}'.format(location.image_index, out_file))
            written.append(out_file)
    return written
