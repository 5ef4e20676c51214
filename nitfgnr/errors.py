"""
The exception types raised while parsing, extracting, or rewriting NITF files.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


from typing import Optional


class NitfError(Exception):
    """
    The base exception for all nitfgnr failures.

    The optional context attributes are populated where the failure can be
    attributed to a specific segment or byte position.
    """

    def __init__(
            self,
            message: str,
            category: Optional[str] = None,
            index: Optional[int] = None,
            offset: Optional[int] = None,
            field: Optional[str] = None):
        self.category = category
        self.index = index
        self.offset = offset
        self.field = field
        context = []
        if category is not None:
            context.append('category={}'.format(category))
        if index is not None:
            context.append('index={}'.format(index))
        if field is not None:
            context.append('field={}'.format(field))
        if offset is not None:
            context.append('offset={}'.format(offset))
        if len(context) > 0:
            message = '{} ({})'.format(message, ', '.join(context))
        super(NitfError, self).__init__(message)


class TruncatedInput(NitfError):
    """Fewer bytes are available than a field or segment declares."""


class MalformedHeader(NitfError, ValueError):
    """A header field violates the format constraints."""


class StructuralInconsistency(NitfError):
    """The header length arithmetic does not agree with the file length."""


class IndexOutOfRange(NitfError, IndexError):
    """The requested segment index is beyond the segment count."""


class IncompatibleTarget(NitfError):
    """The copy destination is not a valid NITF, or cannot hold the merged result."""


class NotJp2Compressed(NitfError):
    """The image segment compression field does not indicate JPEG 2000."""
