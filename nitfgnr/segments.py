"""
The segment categories, and the segment index derived from the file header
length tables.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging
from enum import Enum
from collections import OrderedDict
from typing import Union, Tuple, Iterator, Optional

import numpy

from nitfgnr.errors import StructuralInconsistency, IndexOutOfRange
from nitfgnr.nitf_elements.nitf_head import NITFHeader


logger = logging.getLogger(__name__)


class SegmentCategory(Enum):
    """
    The NITF segment categories, in the order in which they are laid out in a file.
    """

    IMAGE = 'image'
    GRAPHIC = 'graphic'
    TEXT = 'text'
    DES = 'des'
    RES = 'res'

    @classmethod
    def ordered(cls) -> Tuple['SegmentCategory', ...]:
        """
        The categories in file order.

        Returns
        -------
        Tuple[SegmentCategory, ...]
        """

        return tuple(cls)

    @classmethod
    def from_value(cls, value: Union[str, 'SegmentCategory']) -> 'SegmentCategory':
        """
        Interpret a category name (case-insensitive), or pass through a category.

        Parameters
        ----------
        value : str|SegmentCategory

        Returns
        -------
        SegmentCategory
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key in _CATEGORY_ALIASES:
                return _CATEGORY_ALIASES[key]
        raise ValueError('Unknown segment category {!r}'.format(value))

    @property
    def part_type(self) -> str:
        """
        str: The two character file part type which opens each subheader.
        """

        return _PART_TYPES[self]

    @property
    def label(self) -> str:
        """
        str: A human readable label.
        """

        return _LABELS[self]


_PART_TYPES = {
    SegmentCategory.IMAGE: 'IM',
    SegmentCategory.GRAPHIC: 'SY',
    SegmentCategory.TEXT: 'TE',
    SegmentCategory.DES: 'DE',
    SegmentCategory.RES: 'RE'}

_LABELS = {
    SegmentCategory.IMAGE: 'image',
    SegmentCategory.GRAPHIC: 'graphic',
    SegmentCategory.TEXT: 'text',
    SegmentCategory.DES: 'data extension',
    SegmentCategory.RES: 'reserved extension'}

_CATEGORY_ALIASES = {
    'image': SegmentCategory.IMAGE, 'images': SegmentCategory.IMAGE, 'im': SegmentCategory.IMAGE,
    'graphic': SegmentCategory.GRAPHIC, 'graphics': SegmentCategory.GRAPHIC, 'sy': SegmentCategory.GRAPHIC,
    'text': SegmentCategory.TEXT, 'texts': SegmentCategory.TEXT, 'te': SegmentCategory.TEXT,
    'des': SegmentCategory.DES, 'de': SegmentCategory.DES,
    'res': SegmentCategory.RES, 're': SegmentCategory.RES}


class SegmentDescriptor(object):
    """
    The location of a single segment (subheader followed by data) within a file.
    """

    __slots__ = ('_category', '_index', '_offset', '_header_length', '_data_length')

    def __init__(
            self,
            category: SegmentCategory,
            index: int,
            offset: int,
            header_length: int,
            data_length: int):
        """

        Parameters
        ----------
        category : SegmentCategory
        index : int
            The index within the category.
        offset : int
            The absolute offset of the subheader.
        header_length : int
        data_length : int
        """

        self._category = SegmentCategory.from_value(category)
        self._index = int(index)
        self._offset = int(offset)
        self._header_length = int(header_length)
        self._data_length = int(data_length)

    @property
    def category(self) -> SegmentCategory:
        """
        SegmentCategory: The segment category.
        """

        return self._category

    @property
    def index(self) -> int:
        """
        int: The zero-based index within the category.
        """

        return self._index

    @property
    def offset(self) -> int:
        """
        int: The absolute byte offset of the subheader.
        """

        return self._offset

    @property
    def header_length(self) -> int:
        """
        int: The subheader length in bytes.
        """

        return self._header_length

    @property
    def data_length(self) -> int:
        """
        int: The segment data length in bytes.
        """

        return self._data_length

    @property
    def data_offset(self) -> int:
        """
        int: The absolute byte offset of the segment data.
        """

        return self._offset + self._header_length

    @property
    def end(self) -> int:
        """
        int: The absolute byte offset immediately following the segment data.
        """

        return self.data_offset + self._data_length

    def _key(self):
        return self._category, self._index, self._offset, self._header_length, self._data_length

    def __eq__(self, other):
        if not isinstance(other, SegmentDescriptor):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return 'SegmentDescriptor(category={}, index={}, offset={}, header_length={}, data_length={})'.format(
            self._category.value, self._index, self._offset, self._header_length, self._data_length)


class SegmentIndex(object):
    """
    The ordered collection of segment descriptors for a file, in file order.
    """

    __slots__ = ('_header_length', '_descriptors', '_by_category', '_end_offset')

    def __init__(self, header_length: int, descriptors):
        """

        Parameters
        ----------
        header_length : int
            The file header length, which is the offset of the first segment.
        descriptors : Sequence[SegmentDescriptor]
            The descriptors, in file order.
        """

        self._header_length = int(header_length)
        self._descriptors = tuple(descriptors)
        self._by_category = OrderedDict((category, []) for category in SegmentCategory.ordered())
        for entry in self._descriptors:
            self._by_category[entry.category].append(entry)
        self._by_category = OrderedDict(
            (category, tuple(entries)) for category, entries in self._by_category.items())
        self._end_offset = self._descriptors[-1].end if len(self._descriptors) > 0 else self._header_length

    @property
    def header_length(self) -> int:
        """
        int: The file header length.
        """

        return self._header_length

    @property
    def end_offset(self) -> int:
        """
        int: The offset immediately following the final segment, which should
        agree with the declared file length.
        """

        return self._end_offset

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

        return len(self._by_category[SegmentCategory.from_value(category)])

    def list(self, category: Union[str, SegmentCategory]) -> Tuple[SegmentDescriptor, ...]:
        """
        The descriptors of the given category, in order.

        Parameters
        ----------
        category : str|SegmentCategory

        Returns
        -------
        Tuple[SegmentDescriptor, ...]
        """

        return self._by_category[SegmentCategory.from_value(category)]

    def get(self, category: Union[str, SegmentCategory], index: int) -> SegmentDescriptor:
        """
        Gets the descriptor for the given category and index.

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

        category = SegmentCategory.from_value(category)
        entries = self._by_category[category]
        index = int(index)
        if not (0 <= index < len(entries)):
            raise IndexOutOfRange(
                'There are only {} {} segments, invalid index {}'.format(len(entries), category.label, index),
                category=category.value, index=index)
        return entries[index]

    def counts(self) -> 'OrderedDict[str, int]':
        """
        The segment count for each category, in file order.

        Returns
        -------
        OrderedDict
        """

        return OrderedDict((category.value, len(entries)) for category, entries in self._by_category.items())

    def __len__(self):
        return len(self._descriptors)

    def __iter__(self) -> Iterator[SegmentDescriptor]:
        return iter(self._descriptors)

    def __getitem__(self, item):
        return self._descriptors[item]


def _element_offsets(cur_loc: int, subhead_sizes: numpy.ndarray, item_sizes: numpy.ndarray) -> Tuple[int, numpy.ndarray]:
    """
    Accumulate the subheader offsets for one category, where each subheader is
    immediately followed by its data.

    Returns
    -------
    cur_loc : int
        The offset following the final item.
    subhead_offsets : numpy.ndarray
    """

    if subhead_sizes.size == 0:
        return cur_loc, numpy.zeros((0, ), dtype=numpy.int64)

    subhead_offsets = numpy.full(subhead_sizes.shape, cur_loc, dtype=numpy.int64)
    subhead_offsets[1:] += numpy.cumsum(subhead_sizes[:-1]) + numpy.cumsum(item_sizes[:-1])
    cur_loc = int(subhead_offsets[-1] + subhead_sizes[-1] + item_sizes[-1])
    return cur_loc, subhead_offsets


def build_index(header: NITFHeader, file_length: Optional[int] = None, strict: bool = True) -> SegmentIndex:
    """
    Construct the segment index by walking the file header length tables,
    starting from the header length.

    Parameters
    ----------
    header : NITFHeader
    file_length : None|int
        The file length to check against. Defaults to the declared `FL`.
    strict : bool
        If `True`, a mismatch between the final offset and the file length raises,
        otherwise it is logged.

    Returns
    -------
    SegmentIndex

    Raises
    ------
    StructuralInconsistency
    """

    if file_length is None:
        file_length = header.FL

    cur_loc = header.HL
    descriptors = []
    for category in SegmentCategory.ordered():
        table = header.get_segment_table(category)
        cur_loc, subhead_offsets = _element_offsets(cur_loc, table.subhead_sizes, table.item_sizes)
        for i, (offset, subhead_size, item_size) in enumerate(
                zip(subhead_offsets, table.subhead_sizes, table.item_sizes)):
            descriptors.append(SegmentDescriptor(category, i, offset, subhead_size, item_size))

    index = SegmentIndex(header.HL, descriptors)
    if index.end_offset != file_length:
        msg = 'The header length {} plus the declared segment lengths gives {} bytes, ' \
              'but the file length is {}'.format(header.HL, index.end_offset, file_length)
        if strict:
            raise StructuralInconsistency(msg, offset=index.end_offset)
        logger.warning(msg)
    return index
