"""
The NITF file header.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


from collections import OrderedDict

from .base import NITFElement, UserHeaderType, _LengthTable, \
    _TextField, _IntField, _RawField, _ElementField
from .security import NITFSecurityTags


# file profile name to the supported version for that profile
SUPPORTED_PROFILES = OrderedDict([('NITF', '02.10'), ('NSIF', '01.00')])

# segment category name to the file header attribute holding its length table
SEGMENT_TABLE_ATTRIBUTES = OrderedDict([
    ('image', 'ImageSegments'),
    ('graphic', 'GraphicsSegments'),
    ('text', 'TextSegments'),
    ('des', 'DataExtensions'),
    ('res', 'ReservedExtensions')])


class ImageSegmentsType(_LengthTable):
    """LISH/LI pairs."""
    _subheader_digits = 6
    _item_digits = 10


class GraphicsSegmentsType(_LengthTable):
    """LSSH/LS pairs."""
    _subheader_digits = 4
    _item_digits = 6


class TextSegmentsType(_LengthTable):
    """LTSH/LT pairs."""
    _subheader_digits = 4
    _item_digits = 5


class DataExtensionsType(_LengthTable):
    """LDSH/LD pairs."""
    _subheader_digits = 4
    _item_digits = 9


class ReservedExtensionsType(_LengthTable):
    """LRESH/LRE pairs."""
    _subheader_digits = 4
    _item_digits = 7


def _profile_version(header):
    return (SUPPORTED_PROFILES[header.FHDR], )


class NITFHeader(NITFElement):
    """
    The file header for NITF 02.10, and the identically laid out NSIF 01.00.
    The header length `HL` is always derived from the content, while the file
    length `FL` is whatever has been assigned.
    """

    _ordering = (
        'FHDR', 'FVER', 'CLEVEL', 'STYPE',
        'OSTAID', 'FDT', 'FTITLE', 'Security',
        'FSCOP', 'FSCPYS', 'ENCRYP', 'FBKGC',
        'ONAME', 'OPHONE', 'FL', 'HL',
        'ImageSegments', 'GraphicsSegments', 'NUMX',
        'TextSegments', 'DataExtensions', 'ReservedExtensions',
        'UserHeader', 'ExtendedHeader')
    FHDR = _TextField(
        4, default='NITF', values=tuple(SUPPORTED_PROFILES.keys()), strict=True,
        doc='Profile name.')  # type: str
    FVER = _TextField(
        5, default=lambda header: SUPPORTED_PROFILES[header.FHDR], values=_profile_version, strict=True,
        doc='Version, determined by the profile.')  # type: str
    CLEVEL = _IntField(2, default=3, doc='Complexity level.')  # type: int
    STYPE = _TextField(4, default='BF01', doc='Standard type.')  # type: str
    OSTAID = _TextField(10, doc='Originating station identifier.')  # type: str
    FDT = _TextField(14, doc='File date and time (UTC), :code:`CCYYMMDDhhmmss`.')  # type: str
    FTITLE = _TextField(80, doc='File title.')  # type: str
    Security = _ElementField(NITFSecurityTags, doc='The file security tags, `FS` prefixed.')  # type: NITFSecurityTags
    FSCOP = _IntField(5, doc='File copy number.')  # type: int
    FSCPYS = _IntField(5, doc='File number of copies.')  # type: int
    ENCRYP = _TextField(1, default='0', values=('0', ), doc='Encryption.')  # type: str
    FBKGC = _RawField(3, default=b'\x00\x00\x00', doc='Background color, as red, green, blue bytes.')  # type: bytes
    ONAME = _TextField(24, doc='Originator name.')  # type: str
    OPHONE = _TextField(18, doc='Originator phone number.')  # type: str
    FL = _IntField(12, doc='The file length in bytes.')  # type: int
    HL = _IntField(
        6, computed=lambda header: header.get_bytes_length(),
        doc='The header length in bytes.')  # type: int
    ImageSegments = _ElementField(ImageSegmentsType, doc='NUMI and the image length table.')  # type: ImageSegmentsType
    GraphicsSegments = _ElementField(
        GraphicsSegmentsType, doc='NUMS and the graphic length table.')  # type: GraphicsSegmentsType
    NUMX = _IntField(3, doc='Reserved.')  # type: int
    TextSegments = _ElementField(TextSegmentsType, doc='NUMT and the text length table.')  # type: TextSegmentsType
    DataExtensions = _ElementField(
        DataExtensionsType, doc='NUMDES and the data extension length table.')  # type: DataExtensionsType
    ReservedExtensions = _ElementField(
        ReservedExtensionsType, doc='NUMRES and the reserved extension length table.')  # type: ReservedExtensionsType
    UserHeader = _ElementField(UserHeaderType, doc='UDHDL, UDHOFL and UDHD.')  # type: UserHeaderType
    ExtendedHeader = _ElementField(UserHeaderType, doc='XHDL, XHDLOFL and XHD.')  # type: UserHeaderType

    @property
    def version(self) -> str:
        """
        str: The profile and version tag, e.g. :code:`NITF02.10`.
        """

        return self.FHDR + self.FVER

    @property
    def header_length(self) -> int:
        """
        int: The header length `HL`.
        """

        return self.HL

    @property
    def file_length(self) -> int:
        """
        int: The declared file length `FL`.
        """

        return self.FL

    @staticmethod
    def _table_attribute(category) -> str:
        key = getattr(category, 'value', category)
        if key not in SEGMENT_TABLE_ATTRIBUTES:
            raise KeyError('Unknown segment category {}'.format(category))
        return SEGMENT_TABLE_ATTRIBUTES[key]

    def get_segment_table(self, category) -> _LengthTable:
        """
        The length table for the given segment category.

        Parameters
        ----------
        category : str|nitfgnr.segments.SegmentCategory

        Returns
        -------
        ImageSegmentsType|GraphicsSegmentsType|TextSegmentsType|DataExtensionsType|ReservedExtensionsType
        """

        return getattr(self, self._table_attribute(category))

    def set_segment_table(self, category, table: _LengthTable) -> None:
        """
        Replace the length table for the given segment category.

        Parameters
        ----------
        category : str|nitfgnr.segments.SegmentCategory
        table : _LengthTable
            Of the type matching the category.
        """

        setattr(self, self._table_attribute(category), table)

    @property
    def segment_counts(self) -> 'OrderedDict[str, int]':
        """
        OrderedDict: The segment count for each category, in file order.
        """

        return OrderedDict(
            (key, getattr(self, attribute).count) for key, attribute in SEGMENT_TABLE_ATTRIBUTES.items())

    def get_segments_length(self) -> int:
        """
        The total of every subheader and data length in the length tables.

        Returns
        -------
        int
        """

        return sum(
            int(table.subhead_sizes.sum() + table.item_sizes.sum())
            for table in (getattr(self, attribute) for attribute in SEGMENT_TABLE_ATTRIBUTES.values()))
