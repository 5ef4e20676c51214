"""
The graphic segment subheader.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


from .base import NITFElement, UserHeaderType, _TextField, _IntField, _ElementField
from .security import NITFSecurityTags


class GraphicsSegmentHeader(NITFElement):
    """
    The graphic subheader, for CGM graphics. The location and bound fields
    `SLOC`, `SBND1` and `SBND2` are signed row/column pairs, kept as text.
    """

    _ordering = (
        'SY', 'SID', 'SNAME', 'Security', 'ENCRYP', 'SFMT',
        'SSTRUCT', 'SDLVL', 'SALVL', 'SLOC', 'SBND1',
        'SCOLOR', 'SBND2', 'SRES2', 'UserHeader')
    SY = _TextField(2, default='SY', values=('SY', ), doc='Part type.')  # type: str
    SID = _TextField(10, doc='Graphic identifier.')  # type: str
    SNAME = _TextField(20, doc='Graphic name.')  # type: str
    Security = _ElementField(NITFSecurityTags, doc='The graphic security tags, `SS` prefixed.')  # type: NITFSecurityTags
    ENCRYP = _TextField(1, default='0', values=('0', ), doc='Encryption.')  # type: str
    SFMT = _TextField(1, default='C', values=('C', ), doc='Graphic type, :code:`C` for CGM.')  # type: str
    SSTRUCT = _IntField(13, doc='Reserved.')  # type: int
    SDLVL = _IntField(3, default=1, doc='Display level.')  # type: int
    SALVL = _IntField(3, doc='Attachment level.')  # type: int
    SLOC = _TextField(10, default='0000000000', doc='Graphic location.')  # type: str
    SBND1 = _TextField(10, default='0000000000', doc='Upper left bound.')  # type: str
    SCOLOR = _TextField(1, default='M', values=('C', 'M'), doc='Color, or monochrome.')  # type: str
    SBND2 = _TextField(10, default='0000000000', doc='Lower right bound.')  # type: str
    SRES2 = _IntField(2, doc='Reserved.')  # type: int
    UserHeader = _ElementField(UserHeaderType, doc='SXSHDL, SXSOFL and SXSHD.')  # type: UserHeaderType
