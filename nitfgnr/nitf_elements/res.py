"""
The reserved extension segment subheader.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


from .base import NITFElement, Unstructured, _TextField, _IntField, _ElementField
from .security import NITFSecurityTags


class RESUserHeader(Unstructured):
    _length_digits = 4


class ReservedExtensionHeader(NITFElement):
    _ordering = ('RE', 'RESID', 'RESVER', 'Security', 'UserHeader')
    RE = _TextField(2, default='RE', values=('RE', ), doc='Part type.')  # type: str
    RESID = _TextField(25, doc='Reserved extension type identifier.')  # type: str
    RESVER = _IntField(2, default=1, doc='Data definition version.')  # type: int
    Security = _ElementField(NITFSecurityTags, doc='The security tags, `RES` prefixed.')  # type: NITFSecurityTags
    UserHeader = _ElementField(RESUserHeader, doc='RESSHL and the user defined fields.')  # type: RESUserHeader
