"""
Simple function level access to the common NITF container operations. Every
`file_object` argument accepts a path, the file contents as bytes, a binary
file object, or an already constructed :class:`nitfgnr.nitf.NitfFile`.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging
import os
from typing import Union, BinaryIO, List

from nitfgnr.errors import NitfError
from nitfgnr.file_utils import is_file_like, is_path_like
from nitfgnr.nitf import NitfFile, open_nitf
from nitfgnr.segments import SegmentCategory
from nitfgnr.rewrite import copy_categories, copy_des_segments_from_paths, \
    copy_graphic_segments_from_paths, copy_text_segments_from_paths, copy_gtd_segments_from_paths
from nitfgnr import jp2


logger = logging.getLogger(__name__)

__all__ = [
    'get_version', 'get_header_length', 'get_file_length',
    'get_num_images', 'get_num_graphics', 'get_num_text', 'get_num_des', 'get_num_res',
    'extract_des', 'extract_des_header', 'extract_des_data', 'extract_all_des', 'copy_des_segments',
    'copy_des_segments_from_paths', 'copy_graphic_segments_from_paths',
    'copy_text_segments_from_paths', 'copy_gtd_segments_from_paths',
    'extract_all_jp2', 'extract_jp2_index']

FileInput = Union[str, os.PathLike, bytes, BinaryIO, NitfFile]


def get_version(file_object: FileInput) -> str:
    """
    The profile and version tag, e.g. :code:`NITF02.10`.
    """

    with open_nitf(file_object) as nitf_file:
        return nitf_file.version


def get_header_length(file_object: FileInput) -> int:
    """
    The file header length.
    """

    with open_nitf(file_object) as nitf_file:
        return nitf_file.header_length


def get_file_length(file_object: FileInput) -> int:
    """
    The declared file length.
    """

    with open_nitf(file_object) as nitf_file:
        return nitf_file.file_length


def _get_count(file_object: FileInput, category: SegmentCategory) -> int:
    with open_nitf(file_object) as nitf_file:
        return nitf_file.count(category)


def get_num_images(file_object: FileInput) -> int:
    return _get_count(file_object, SegmentCategory.IMAGE)


def get_num_graphics(file_object: FileInput) -> int:
    return _get_count(file_object, SegmentCategory.GRAPHIC)


def get_num_text(file_object: FileInput) -> int:
    return _get_count(file_object, SegmentCategory.TEXT)


def get_num_des(file_object: FileInput) -> int:
    return _get_count(file_object, SegmentCategory.DES)


def get_num_res(file_object: FileInput) -> int:
    return _get_count(file_object, SegmentCategory.RES)


def extract_des_header(file_object: FileInput, index: int) -> bytes:
    """
    Fetch the subheader bytes of the given data extension segment.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile
    index : int

    Returns
    -------
    bytes

    Raises
    ------
    IndexOutOfRange
    """

    with open_nitf(file_object) as nitf_file:
        return nitf_file.extract_header(nitf_file.descriptor(SegmentCategory.DES, index))


def extract_des_data(file_object: FileInput, index: int) -> bytes:
    """
    Fetch the data bytes of the given data extension segment.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile
    index : int

    Returns
    -------
    bytes

    Raises
    ------
    IndexOutOfRange
    """

    with open_nitf(file_object) as nitf_file:
        return nitf_file.extract_data(nitf_file.descriptor(SegmentCategory.DES, index))


def extract_des(file_object: FileInput, index: int) -> bytes:
    """
    Fetch the given data extension segment, its subheader followed by its data.

    Parameters
    ----------
    file_object : str|os.PathLike|bytes|BinaryIO|NitfFile
    index : int

    Returns
    -------
    bytes

    Raises
    ------
    IndexOutOfRange
    """

    with open_nitf(file_object) as nitf_file:
        descriptor = nitf_file.descriptor(SegmentCategory.DES, index)
        return nitf_file.extract_header(descriptor) + nitf_file.extract_data(descriptor)


def extract_all_des(file_object: FileInput, out_directory: Union[str, os.PathLike], prefix: str = '') -> List[str]:
    """
    Write each data extension segment, its subheader followed by its data, to
    its own file `<prefix><index>.des` in the output directory. A segment which
    cannot be read is logged and skipped, and leaves no file behind.

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
        for descriptor in nitf_file.list(SegmentCategory.DES):
            out_file = os.path.join(out_directory, '{}{}.des'.format(prefix, descriptor.index))
            try:
                nitf_file.write_range(descriptor.offset, descriptor.end - descriptor.offset, out_file)
            except NitfError as e:
                logger.warning('Failed writing data extension segment {} to {}. {}'.format(descriptor.index, out_file, e))
                continue
            written.append(out_file)
    return written


def copy_des_segments(source: FileInput, target: Union[str, os.PathLike, BinaryIO]) -> None:
    """
    Append the data extension segments of the source to the target, rewriting
    the target. The target is either a path, or a binary file object opened
    for both reading and writing.

    Parameters
    ----------
    source : str|os.PathLike|bytes|BinaryIO|NitfFile
    target : str|os.PathLike|BinaryIO

    Raises
    ------
    IncompatibleTarget
    """

    if is_path_like(target):
        copy_des_segments_from_paths(source, target)
    elif is_file_like(target):
        # the target is read in full before being overwritten
        result = copy_categories(source, target, SegmentCategory.DES)
        target.seek(0, os.SEEK_SET)
        target.write(result)
        target.truncate()
        target.flush()
    else:
        raise TypeError('target must be a path or a binary file object, got {}'.format(type(target)))


def extract_all_jp2(file_object: FileInput, out_directory: Union[str, os.PathLike], prefix: str = '') -> List[str]:
    """
    Write the JPEG 2000 data of each image segment to its own file in
    `out_directory`. Image segments without JPEG 2000 data are logged and skipped.

    Returns
    -------
    List[str]
        The paths of the files written.
    """

    return jp2.extract_all_jp2(file_object, out_directory, prefix=prefix)


def extract_jp2_index(file_object: FileInput, index: int) -> bytes:
    """
    Fetch the JPEG 2000 data of the given image segment.

    Raises
    ------
    IndexOutOfRange
    NotJp2Compressed
    """

    return jp2.extract_jp2_index(file_object, index)
