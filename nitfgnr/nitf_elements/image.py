"""
The image segment subheader.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging

import numpy

from nitfgnr.cursor import parse_ascii_int
from .base import NITFElement, NITFLoop, UserHeaderType, \
    _TextField, _IntField, _ElementField, _require
from .security import NITFSecurityTags


logger = logging.getLogger(__name__)

# all valid image compression codes
COMPRESSION_CODES = frozenset([
    'NC', 'NM', 'C1', 'C3', 'C4', 'C5', 'C6', 'C7', 'C8', 'I1',
    'M1', 'M3', 'M4', 'M5', 'M6', 'M7', 'M8'])
# JPEG 2000, and JPEG 2000 preceded by an image data mask table
JPEG2000_CODES = frozenset(['C8', 'M8'])
# the compression codes with an image data mask table
MASKED_CODES = frozenset(['NM', 'M1', 'M3', 'M4', 'M5', 'M6', 'M7', 'M8'])
_UNCOMPRESSED_CODES = ('NC', 'NM')


class ImageBand(NITFElement):
    """
    The description of a single band, with its optional look-up tables.
    """

    _ordering = ('IREPBAND', 'ISUBCAT', 'IFC', 'IMFLT', 'LUTD')
    IREPBAND = _TextField(2, doc='Band representation.')  # type: str
    ISUBCAT = _TextField(6, doc='Band subcategory.')  # type: str
    IFC = _TextField(1, default='N', values=('N', ), doc='Image filter condition.')  # type: str
    IMFLT = _TextField(3, doc='Image filter code, reserved.')  # type: str

    @property
    def LUTD(self):
        """
        None|numpy.ndarray: The look-up tables, a `uint8` array of shape `(NLUTS, NELUTS)`.
        """

        return self.__dict__.get('_lutd', None)

    @LUTD.setter
    def LUTD(self, value):
        if value is not None:
            value = numpy.asarray(value)
            if value.dtype != numpy.uint8 or value.ndim != 2:
                raise ValueError('LUTD must be a two-dimensional uint8 array')
            if value.shape[0] > 4 or value.shape[1] > 65536:
                raise ValueError('LUTD shape {} exceeds (4, 65536)'.format(value.shape))
            if value.size == 0:
                value = None
        self.__dict__['_lutd'] = value

    @property
    def NLUTS(self) -> int:
        """
        int: The number of look-up tables.
        """

        lutd = self.LUTD
        return 0 if lutd is None else lutd.shape[0]

    @property
    def NELUTS(self) -> int:
        """
        int: The number of entries in each look-up table.
        """

        lutd = self.LUTD
        return 0 if lutd is None else lutd.shape[1]

    def _field_length(self, name):
        if name == 'LUTD':
            return 1 if self.NLUTS == 0 else 6 + self.LUTD.size
        return super(ImageBand, self)._field_length(name)

    def _field_bytes(self, name):
        if name == 'LUTD':
            if self.NLUTS == 0:
                return b'0'
            return '{0:1d}{1:05d}'.format(self.NLUTS, self.NELUTS).encode('ascii') + self.LUTD.tobytes()
        return super(ImageBand, self)._field_bytes(name)

    def _read_field(self, name, value, start):
        if name != 'LUTD':
            return super(ImageBand, self)._read_field(name, value, start)

        _require(value, start, 1, 'NLUTS', self.__class__)
        nluts = parse_ascii_int(value[start:start+1], name='NLUTS', offset=start)
        if nluts == 0:
            self.LUTD = None
            return start + 1
        _require(value, start + 1, 5, 'NELUTS', self.__class__)
        neluts = parse_ascii_int(value[start+1:start+6], name='NELUTS', offset=start+1)
        _require(value, start + 6, nluts*neluts, 'LUTD', self.__class__)
        self.LUTD = numpy.frombuffer(
            value, dtype=numpy.uint8, count=nluts*neluts, offset=start+6).reshape((nluts, neluts)).copy()
        return start + 6 + nluts*neluts


class ImageBands(NITFLoop):
    """
    NBANDS, or XBANDS when there are more than nine, and the bands.
    """

    _entry_type = ImageBand
    _count_digits = 1

    def _count_bytes(self):
        if len(self) <= 9:
            return '{0:1d}'.format(len(self)).encode('ascii')
        return '0{0:05d}'.format(len(self)).encode('ascii')

    @classmethod
    def _read_count(cls, value, start):
        count, loc = super(ImageBands, cls)._read_count(value, start)
        if count > 0:
            return count, loc
        _require(value, loc, 5, 'XBANDS', cls)
        return parse_ascii_int(value[loc:loc+5], name='XBANDS', offset=loc), loc + 5


class ImageComment(NITFElement):
    _ordering = ('COMMENT', )
    COMMENT = _TextField(80, doc='A free text comment.')  # type: str


class ImageComments(NITFLoop):
    _entry_type = ImageComment
    _count_digits = 1


class ImageSegmentHeader(NITFElement):
    """
    The image subheader. The image data is never interpreted, beyond the
    compression code `IC` used to locate JPEG 2000 data.
    """

    _ordering = (
        'IM', 'IID1', 'IDATIM', 'TGTID',
        'IID2', 'Security', 'ENCRYP', 'ISORCE',
        'NROWS', 'NCOLS', 'PVTYPE', 'IREP',
        'ICAT', 'ABPP', 'PJUST', 'ICORDS',
        'IGEOLO', 'Comments', 'IC', 'COMRAT', 'Bands',
        'ISYNC', 'IMODE', 'NBPR', 'NBPC', 'NPPBH',
        'NPPBV', 'NBPP', 'IDLVL', 'IALVL',
        'ILOC', 'IMAG', 'UserHeader', 'ExtendedHeader')
    IM = _TextField(2, default='IM', values=('IM', ), doc='Part type.')  # type: str
    IID1 = _TextField(10, doc='Image identifier 1.')  # type: str
    IDATIM = _TextField(14, doc='Image date and time, :code:`CCYYMMDDhhmmss`.')  # type: str
    TGTID = _TextField(17, doc='Target identifier.')  # type: str
    IID2 = _TextField(80, doc='Image identifier 2.')  # type: str
    Security = _ElementField(NITFSecurityTags, doc='The image security tags, `IS` prefixed.')  # type: NITFSecurityTags
    ENCRYP = _TextField(1, default='0', values=('0', ), doc='Encryption.')  # type: str
    ISORCE = _TextField(42, doc='Image source.')  # type: str
    NROWS = _IntField(8, doc='Number of significant rows.')  # type: int
    NCOLS = _IntField(8, doc='Number of significant columns.')  # type: int
    PVTYPE = _TextField(3, default='INT', values=('INT', 'B', 'SI', 'R', 'C'), doc='Pixel value type.')  # type: str
    IREP = _TextField(
        8, default='MONO',
        values=('MONO', 'RGB', 'RGB/LUT', 'MULTI', 'NODISPLY', 'NVECTOR', 'POLAR', 'VPH', 'YCbCr601'),
        doc='Image representation.')  # type: str
    ICAT = _TextField(8, default='VIS', doc='Image category.')  # type: str
    ABPP = _IntField(2, default=8, doc='Actual bits per pixel per band.')  # type: int
    PJUST = _TextField(1, default='R', values=('L', 'R'), doc='Pixel justification.')  # type: str
    ICORDS = _TextField(
        1, values=('', 'U', 'G', 'N', 'S', 'D'),
        doc='Image coordinate representation, blank when there is no `IGEOLO`.')  # type: str
    IGEOLO = _TextField(
        60, present=lambda header: header.ICORDS != '',
        doc='Image corner locations.')  # type: str
    Comments = _ElementField(ImageComments, doc='NICOM and the image comments.')  # type: ImageComments
    IC = _TextField(
        2, default='NC', values=COMPRESSION_CODES,
        doc='Image compression. :code:`C8` is JPEG 2000, and :code:`M8` is JPEG 2000 '
            'following an image data mask table.')  # type: str
    COMRAT = _TextField(
        4, present=lambda header: header.IC not in _UNCOMPRESSED_CODES,
        doc='Compression rate code.')  # type: str
    Bands = _ElementField(ImageBands, doc='The image bands.')  # type: ImageBands
    ISYNC = _IntField(1, doc='Image sync code, reserved.')  # type: int
    IMODE = _TextField(1, default='B', values=('B', 'P', 'R', 'S'), doc='Image mode.')  # type: str
    NBPR = _IntField(4, default=1, doc='Number of blocks per row.')  # type: int
    NBPC = _IntField(4, default=1, doc='Number of blocks per column.')  # type: int
    NPPBH = _IntField(4, doc='Number of pixels per block horizontal.')  # type: int
    NPPBV = _IntField(4, doc='Number of pixels per block vertical.')  # type: int
    NBPP = _IntField(2, default=8, doc='Number of bits per pixel per band.')  # type: int
    IDLVL = _IntField(3, default=1, doc='Display level.')  # type: int
    IALVL = _IntField(3, doc='Attachment level.')  # type: int
    ILOC = _TextField(10, default='0000000000', doc='Image location, :code:`RRRRRCCCCC`.')  # type: str
    IMAG = _TextField(4, default='1.0', doc='Image magnification.')  # type: str
    UserHeader = _ElementField(UserHeaderType, doc='UDIDL, UDOFL and UDID.')  # type: UserHeaderType
    ExtendedHeader = _ElementField(UserHeaderType, doc='IXSHDL, IXSOFL and IXSHD.')  # type: UserHeaderType

    @property
    def is_jpeg2000(self) -> bool:
        """
        bool: Is the image data JPEG 2000 compressed?
        """

        return self.IC in JPEG2000_CODES

    @property
    def is_masked(self) -> bool:
        """
        bool: Does the image data begin with an image data mask table?
        """

        return self.IC in MASKED_CODES
