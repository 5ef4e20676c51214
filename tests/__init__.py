"""
Helpers for synthesizing NITF files in memory for the unit tests.
"""

import struct
import unittest

from nitfgnr.segments import SegmentCategory
from nitfgnr.nitf_elements.base import UserHeaderType
from nitfgnr.nitf_elements.security import NITFSecurityTags
from nitfgnr.nitf_elements.nitf_head import NITFHeader, ImageSegmentsType, GraphicsSegmentsType, \
    TextSegmentsType, DataExtensionsType, ReservedExtensionsType
from nitfgnr.nitf_elements.image import ImageSegmentHeader, ImageBands, ImageBand
from nitfgnr.nitf_elements.graphics import GraphicsSegmentHeader
from nitfgnr.nitf_elements.text import TextSegmentHeader
from nitfgnr.nitf_elements.des import DataExtensionHeader, DESUserHeader
from nitfgnr.nitf_elements.res import ReservedExtensionHeader


JP2_SIGNATURE = b'\x00\x00\x00\x0cjP  \r\n\x87\n'
CODESTREAM = b'\xff\x4f\xff\x51\x00\x29' + bytes(range(41)) + b'\xff\xd9'

_TABLE_TYPES = {
    SegmentCategory.IMAGE: ImageSegmentsType,
    SegmentCategory.GRAPHIC: GraphicsSegmentsType,
    SegmentCategory.TEXT: TextSegmentsType,
    SegmentCategory.DES: DataExtensionsType,
    SegmentCategory.RES: ReservedExtensionsType}


def image_segment(data=b'\x00'*16, IC='NC', IID1='IMAGE', **kwargs):
    """
    An image segment (subheader bytes, data bytes) pair.
    """

    kwargs.setdefault('Bands', ImageBands(values=[ImageBand(IREPBAND='M'), ]))
    kwargs.setdefault('NROWS', 4)
    kwargs.setdefault('NCOLS', 4)
    kwargs.setdefault('NPPBH', 4)
    kwargs.setdefault('NPPBV', 4)
    header = ImageSegmentHeader(IC=IC, IID1=IID1, **kwargs)
    return header.to_bytes(), data


def graphic_segment(data=b'\x00\x01\x00\x02CGM', SID='GRAPHIC', **kwargs):
    return GraphicsSegmentHeader(SID=SID, **kwargs).to_bytes(), data


def text_segment(data=b'Some text content.', TEXTID='TEXT', **kwargs):
    return TextSegmentHeader(TEXTID=TEXTID, **kwargs).to_bytes(), data


def des_segment(data=b'<xml>content</xml>', DESID='XML_DATA_CONTENT', user_header=None, **kwargs):
    if user_header is not None:
        kwargs['UserHeader'] = DESUserHeader(data=user_header)
    return DataExtensionHeader(DESID=DESID, **kwargs).to_bytes(), data


def res_segment(data=b'reserved', RESID='RESERVED', **kwargs):
    return ReservedExtensionHeader(RESID=RESID, **kwargs).to_bytes(), data


def build_nitf(
        images=(), graphics=(), texts=(), des=(), res=(),
        profile='NITF', title='TEST FILE', classification='U', user_header=None, **kwargs):
    """
    Assemble a complete NITF file.

    Parameters
    ----------
    images : Sequence[Tuple[bytes, bytes]]
        The (subheader, data) pairs of each image segment, and likewise for the
        other categories.
    graphics : Sequence[Tuple[bytes, bytes]]
    texts : Sequence[Tuple[bytes, bytes]]
    des : Sequence[Tuple[bytes, bytes]]
    res : Sequence[Tuple[bytes, bytes]]
    profile : str
        One of `'NITF'` or `'NSIF'`.
    title : str
    classification : str
    user_header : None|bytes
        The user defined header data.

    Returns
    -------
    bytes
    """

    segments = {
        SegmentCategory.IMAGE: list(images),
        SegmentCategory.GRAPHIC: list(graphics),
        SegmentCategory.TEXT: list(texts),
        SegmentCategory.DES: list(des),
        SegmentCategory.RES: list(res)}
    if user_header is not None:
        kwargs['UserHeader'] = UserHeaderType(OFL=0, data=user_header)

    header = NITFHeader(
        FHDR=profile, FTITLE=title, OSTAID='TESTSTA', FDT='20240101120000',
        Security=NITFSecurityTags(CLAS=classification), **kwargs)
    for category, entries in segments.items():
        table = _TABLE_TYPES[category](
            [len(entry[0]) for entry in entries], [len(entry[1]) for entry in entries])
        header.set_segment_table(category, table)
    header.FL = header.HL + header.get_segments_length()

    parts = [header.to_bytes(), ]
    for category in SegmentCategory.ordered():
        for sub_bytes, data in segments[category]:
            parts.append(sub_bytes)
            parts.append(data)
    return b''.join(parts)


def jp2_box(box_id, payload, extended=False):
    """
    A JP2 box with the given four character type.
    """

    if extended:
        return struct.pack('>I4sQ', 1, box_id, 16 + len(payload)) + payload
    return struct.pack('>I4s', 8 + len(payload), box_id) + payload


def make_jp2(codestream=CODESTREAM, extended=False, extra_boxes=b''):
    """
    A minimal JP2 file wrapping the given codestream.
    """

    return JP2_SIGNATURE + \
        jp2_box(b'ftyp', b'jp2 \x00\x00\x00\x00jp2 ') + \
        jp2_box(b'jp2h', jp2_box(b'ihdr', b'\x00'*14)) + \
        extra_boxes + \
        jp2_box(b'jp2c', codestream, extended=extended)


def mask_table(length=16):
    """
    An image data mask table of the given length, led by IMDATOFF.
    """

    return struct.pack('>I', length) + b'\x00'*(length - 4)


def sample_file():
    """
    A file with segments of every category.
    """

    return build_nitf(
        images=[image_segment(data=make_jp2(), IC='C8'), image_segment()],
        graphics=[graphic_segment()],
        texts=[text_segment(), text_segment(data=b'Second text.', TEXTID='TEXT2')],
        des=[des_segment(), des_segment(data=b'second des', DESID='TEST_DES', user_header=b'abcd')],
        res=[res_segment()])


__all__ = [
    'unittest', 'JP2_SIGNATURE', 'CODESTREAM', 'image_segment', 'graphic_segment', 'text_segment',
    'des_segment', 'res_segment', 'build_nitf', 'jp2_box', 'make_jp2', 'mask_table', 'sample_file']
