"""
The text segment subheader.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


from .base import NITFElement, UserHeaderType, _TextField, _IntField, _ElementField
from .security import NITFSecurityTags


class TextSegmentHeader(NITFElement):
    """
    The text subheader. `TXTFMT` names the text encoding: BCS (:code:`STA`),
    ECS (:code:`UT1`), UTF-8 subset (:code:`U8S`) or USMTF (:code:`MTF`).
    """

    _ordering = (
        'TE', 'TEXTID', 'TXTALVL', 'TXTDT', 'TXTITL', 'Security',
        'ENCRYP', 'TXTFMT', 'UserHeader')
    TE = _TextField(2, default='TE', values=('TE', ), doc='Part type.')  # type: str
    TEXTID = _TextField(7, doc='Text identifier.')  # type: str
    TXTALVL = _IntField(3, doc='Attachment level.')  # type: int
    TXTDT = _TextField(14, doc='Text date and time, :code:`CCYYMMDDhhmmss`.')  # type: str
    TXTITL = _TextField(80, doc='Text title.')  # type: str
    Security = _ElementField(NITFSecurityTags, doc='The text security tags, `TS` prefixed.')  # type: NITFSecurityTags
    ENCRYP = _TextField(1, default='0', values=('0', ), doc='Encryption.')  # type: str
    TXTFMT = _TextField(3, default='STA', values=('', 'MTF', 'STA', 'UT1', 'U8S'), doc='Text format.')  # type: str
    UserHeader = _ElementField(UserHeaderType, doc='TXSHDL, TXSOFL and TXSHD.')  # type: UserHeaderType
