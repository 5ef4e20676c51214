"""
The data extension segment subheader.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


from .base import NITFElement, Unstructured, _TextField, _IntField, _ElementField
from .security import NITFSecurityTags


# the headers whose extensions may overflow into a TRE_OVERFLOW segment
OVERFLOW_HEADER_TYPES = ('XHD', 'IXSHD', 'SXSHD', 'TXSHD', 'UDHD', 'UDID')


def _is_overflow(header):
    return header.DESID == 'TRE_OVERFLOW'


class DESUserHeader(Unstructured):
    """
    DESSHL and the user defined subheader fields, kept as opaque bytes.
    """

    _length_digits = 4


class DataExtensionHeader(NITFElement):
    """
    The data extension subheader. The data itself is opaque.
    """

    _ordering = ('DE', 'DESID', 'DESVER', 'Security', 'DESOFLW', 'DESITEM', 'UserHeader')
    DE = _TextField(2, default='DE', values=('DE', ), doc='Part type.')  # type: str
    DESID = _TextField(25, default='XML_DATA_CONTENT', doc='Data extension type identifier.')  # type: str
    DESVER = _IntField(2, default=1, doc='Data definition version.')  # type: int
    Security = _ElementField(NITFSecurityTags, doc='The security tags, `DES` prefixed.')  # type: NITFSecurityTags
    DESOFLW = _TextField(
        6, values=OVERFLOW_HEADER_TYPES, present=_is_overflow,
        doc='The type of header whose extensions overflowed here.')  # type: str
    DESITEM = _IntField(
        3, present=_is_overflow,
        doc='The index of the segment whose extensions overflowed here.')  # type: int
    UserHeader = _ElementField(DESUserHeader, doc='The user defined subheader.')  # type: DESUserHeader

    @property
    def is_overflow(self) -> bool:
        """
        bool: Does this segment hold overflowed tagged record extensions?
        """

        return _is_overflow(self)
