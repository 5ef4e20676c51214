"""
Functionality for copying whole segment categories from one NITF file into
another, producing a new structurally consistent NITF file.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging
import os
import shutil
from io import BytesIO
from contextlib import ExitStack
from tempfile import mkstemp
from typing import Union, Sequence, BinaryIO, Optional, List, Tuple

import numpy

from nitfgnr.errors import NitfError, IncompatibleTarget
from nitfgnr.nitf import NitfFile, open_nitf, DEFAULT_CHUNK_SIZE
from nitfgnr.segments import SegmentCategory, SegmentDescriptor
from nitfgnr.nitf_elements.nitf_head import NITFHeader


logger = logging.getLogger(__name__)

COPY_MODES = ('append', 'replace')

# the widths of the file length and header length fields
_FL_LIMIT = 10**12
_HL_LIMIT = 10**6

_GTD_CATEGORIES = (SegmentCategory.GRAPHIC, SegmentCategory.TEXT, SegmentCategory.DES)


def _validate_categories(
        categories: Union[str, SegmentCategory, Sequence[Union[str, SegmentCategory]]]) -> Tuple[SegmentCategory, ...]:
    if isinstance(categories, (str, SegmentCategory)):
        categories = [categories, ]
    out = set(SegmentCategory.from_value(entry) for entry in categories)
    if len(out) == 0:
        raise ValueError('At least one segment category must be selected')
    return tuple(entry for entry in SegmentCategory.ordered() if entry in out)


def _merge_header(
        source_file: NitfFile,
        target_file: NitfFile,
        categories: Tuple[SegmentCategory, ...],
        mode: str) -> NITFHeader:
    """
    Construct the output file header, from a fresh parse of the target header
    with the length tables of the selected categories replaced.
    """

    header = NITFHeader.from_bytes(target_file.extract_file_header(), 0)
    for category in categories:
        target_table = header.get_segment_table(category)
        source_table = source_file.header.get_segment_table(category)
        if mode == 'append':
            subhead_sizes = numpy.concatenate((target_table.subhead_sizes, source_table.subhead_sizes))
            item_sizes = numpy.concatenate((target_table.item_sizes, source_table.item_sizes))
        else:
            subhead_sizes = source_table.subhead_sizes.copy()
            item_sizes = source_table.item_sizes.copy()
        new_table = target_table.__class__(subhead_sizes, item_sizes)
        try:
            new_table.check_sizes()
        except ValueError as e:
            raise IncompatibleTarget(
                'The merged {} segments cannot be represented. {}'.format(category.label, e),
                category=category.value)
        header.set_segment_table(category, new_table)

    header_length = header.HL
    if header_length >= _HL_LIMIT:
        raise IncompatibleTarget(
            'The merged header length {} overflows the header length field'.format(header_length), field='HL')
    file_length = header_length + header.get_segments_length()
    if file_length >= _FL_LIMIT:
        raise IncompatibleTarget(
            'The merged file length {} overflows the file length field'.format(file_length), field='FL')
    header.FL = file_length
    return header


def _segment_plan(
        source_file: NitfFile,
        target_file: NitfFile,
        categories: Tuple[SegmentCategory, ...],
        mode: str) -> List[Tuple[NitfFile, SegmentDescriptor]]:
    """
    The segments of the output file, in file order, paired with the file
    holding their bytes.
    """

    plan = []
    for category in SegmentCategory.ordered():
        if category not in categories or mode == 'append':
            plan.extend((target_file, entry) for entry in target_file.list(category))
        if category in categories:
            plan.extend((source_file, entry) for entry in source_file.list(category))
    return plan


def copy_categories(
        source: Union[str, os.PathLike, bytes, BinaryIO, NitfFile],
        target: Union[str, os.PathLike, bytes, BinaryIO, NitfFile],
        categories: Union[str, SegmentCategory, Sequence[Union[str, SegmentCategory]]],
        output: Optional[BinaryIO] = None,
        mode: str = 'append',
        chunk_size: int = DEFAULT_CHUNK_SIZE) -> Optional[bytes]:
    """
    Copy the segments of the selected categories from the source file into the
    target file structure, writing a new NITF file.

    The output file header is the target's file header, including its
    security tags, user header and extended header, with rewritten length
    tables, header length and file length. The segments of unselected
    categories are copied from the target byte for byte. Neither input is modified.

    Parameters
    ----------
    source : str|os.PathLike|bytes|BinaryIO|NitfFile
        The file providing the segments to copy.
    target : str|os.PathLike|bytes|BinaryIO|NitfFile
        The file providing the file header, and the segments of unselected categories.
    categories : str|SegmentCategory|Sequence
        The segment categories to copy.
    output : None|BinaryIO
        The binary sink for the new file. If `None`, the new file contents
        are returned.
    mode : str
        One of `'append'`, where the copied segments follow the target's
        segments of the same category, or `'replace'`, where the copied
        segments supplant them.
    chunk_size : int
        The largest single read while streaming segment bytes.

    Returns
    -------
    None|bytes

    Raises
    ------
    IncompatibleTarget
        If the target is not a structurally valid NITF file, or the merged
        result cannot be represented.
    """

    if mode not in COPY_MODES:
        raise ValueError('mode must be one of {}, got {}'.format(COPY_MODES, mode))
    categories = _validate_categories(categories)

    with ExitStack() as stack:
        source_file = stack.enter_context(open_nitf(source))
        try:
            target_file = stack.enter_context(open_nitf(target))
        except NitfError as e:
            raise IncompatibleTarget('The target is not a valid NITF file. {}'.format(e)) from e
        if len(target_file.inconsistencies) > 0:
            raise IncompatibleTarget(
                'The target is not structurally consistent. {}'.format('; '.join(target_file.inconsistencies)))

        header = _merge_header(source_file, target_file, categories, mode)
        plan = _segment_plan(source_file, target_file, categories, mode)
        logger.info(
            'Copying {} segments into a {} file of length {}'.format(
                ', '.join(entry.value for entry in categories), header.version, header.FL))

        sink = BytesIO() if output is None else output
        sink.write(header.to_bytes())
        for nitf_file, entry in plan:
            for chunk in nitf_file.iter_range(
                    entry.offset, entry.header_length + entry.data_length, chunk_size=chunk_size):
                sink.write(chunk)

    if output is None:
        return sink.getvalue()
    return None


def copy_categories_in_place(
        source_path: Union[str, os.PathLike],
        target_path: Union[str, os.PathLike],
        categories: Union[str, SegmentCategory, Sequence[Union[str, SegmentCategory]]],
        mode: str = 'append') -> None:
    """
    Copy the selected categories from the source file into the target file,
    rewriting the target path. The new file is written to a temporary file in
    the target directory, which then replaces the target.

    Parameters
    ----------
    source_path : str|os.PathLike
    target_path : str|os.PathLike
    categories : str|SegmentCategory|Sequence
    mode : str
    """

    target_path = os.fspath(target_path)
    if not os.path.isfile(target_path):
        raise IncompatibleTarget('The target path {} is not a file'.format(target_path))

    directory = os.path.dirname(os.path.abspath(target_path))
    fi, temp_path = mkstemp(suffix='.ntf', dir=directory, text=False)
    try:
        with os.fdopen(fi, 'wb') as fo:
            copy_categories(source_path, target_path, categories, output=fo, mode=mode)
        shutil.copymode(target_path, temp_path)
        os.replace(temp_path, target_path)
    except Exception:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
    logger.info('Rewrote {}'.format(target_path))


def copy_des_segments_from_paths(source_path: Union[str, os.PathLike], target_path: Union[str, os.PathLike]) -> None:
    """
    Append the data extension segments of the source file to the target file, in place.

    Parameters
    ----------
    source_path : str|os.PathLike
    target_path : str|os.PathLike
    """

    copy_categories_in_place(source_path, target_path, SegmentCategory.DES)


def copy_graphic_segments_from_paths(source_path: Union[str, os.PathLike], target_path: Union[str, os.PathLike]) -> None:
    """
    Append the graphic segments of the source file to the target file, in place.

    Parameters
    ----------
    source_path : str|os.PathLike
    target_path : str|os.PathLike
    """

    copy_categories_in_place(source_path, target_path, SegmentCategory.GRAPHIC)


def copy_text_segments_from_paths(source_path: Union[str, os.PathLike], target_path: Union[str, os.PathLike]) -> None:
    """
    Append the text segments of the source file to the target file, in place.

    Parameters
    ----------
    source_path : str|os.PathLike
    target_path : str|os.PathLike
    """

    copy_categories_in_place(source_path, target_path, SegmentCategory.TEXT)


def copy_gtd_segments_from_paths(source_path: Union[str, os.PathLike], target_path: Union[str, os.PathLike]) -> None:
    """
    Append the graphic, text and data extension segments of the source file
    to the target file, in place.

    Parameters
    ----------
    source_path : str|os.PathLike
    target_path : str|os.PathLike
    """

    copy_categories_in_place(source_path, target_path, _GTD_CATEGORIES)
