"""
The security tag block, shared by the file header and every segment subheader.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


from .base import NITFElement, _TextField


# the recognized security classifications, from least to most restrictive
CLASSIFICATIONS = ('U', 'R', 'C', 'S', 'T')

_DECLASSIFICATION_EXEMPTIONS = ('', ) + \
    tuple('X{}'.format(i) for i in range(1, 9)) + \
    tuple('X25{}'.format(i) for i in range(1, 9))


class NITFSecurityTags(NITFElement):
    """
    The sixteen security fields, always 167 bytes in total. The prefix
    (`FS`, `IS`, `SS`, `TS`, `DES` or `RES`) depends on the owning header, and
    is omitted here.
    """

    _ordering = (
        'CLAS', 'CLSY', 'CODE', 'CTLH',
        'REL', 'DCTP', 'DCDT', 'DCXM',
        'DG', 'DGDT', 'CLTX', 'CATP',
        'CAUT', 'CRSN', 'SRDT', 'CTLN')
    CLAS = _TextField(1, default='U', values=CLASSIFICATIONS, doc='Classification.')  # type: str
    CLSY = _TextField(2, doc='Classification system, e.g. :code:`US`.')  # type: str
    CODE = _TextField(11, doc='Codewords.')  # type: str
    CTLH = _TextField(2, doc='Control and handling.')  # type: str
    REL = _TextField(20, doc='Release instructions.')  # type: str
    DCTP = _TextField(2, values=('', 'DD', 'DE', 'GD', 'GE', 'O', 'X'), doc='Declassification type.')  # type: str
    DCDT = _TextField(8, doc='Declassification date, :code:`CCYYMMDD`.')  # type: str
    DCXM = _TextField(4, values=_DECLASSIFICATION_EXEMPTIONS, doc='Declassification exemption.')  # type: str
    DG = _TextField(1, values=('', 'S', 'C', 'R'), doc='Downgrade.')  # type: str
    DGDT = _TextField(8, doc='Downgrade date, :code:`CCYYMMDD`.')  # type: str
    CLTX = _TextField(43, doc='Classification text.')  # type: str
    CATP = _TextField(1, values=('', 'O', 'D', 'M'), doc='Classification authority type.')  # type: str
    CAUT = _TextField(40, doc='Classification authority.')  # type: str
    CRSN = _TextField(1, values=('', 'A', 'B', 'C', 'D', 'E', 'F', 'G'), doc='Classification reason.')  # type: str
    SRDT = _TextField(8, doc='Security source date, :code:`CCYYMMDD`.')  # type: str
    CTLN = _TextField(15, doc='Security control number.')  # type: str
