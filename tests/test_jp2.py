import os
import struct

import pytest

from nitfgnr.errors import NotJp2Compressed, IndexOutOfRange, MalformedHeader, TruncatedInput
from nitfgnr.nitf import NitfFile
from nitfgnr.jp2 import JP2Location, locate_jp2, locate_all_jp2, read_jp2, extract_jp2_index, \
    extract_all_jp2

from tests import unittest, build_nitf, image_segment, make_jp2, mask_table, jp2_box, \
    JP2_SIGNATURE, CODESTREAM


def _three_images():
    return build_nitf(images=[
        image_segment(data=make_jp2(), IC='C8'),
        image_segment(data=b'\x00'*16, IC='NC'),
        image_segment(data=make_jp2(codestream=CODESTREAM + b'\x00'*4), IC='C8')])


class TestLocate(unittest.TestCase):
    def setUp(self):
        self.data = _three_images()
        self.nitf = NitfFile(self.data)

    def test_locate_all(self):
        locations = locate_all_jp2(self.nitf)
        self.assertEqual([entry.image_index for entry in locations], [0, 2])
        for location in locations:
            with self.subTest(msg='image {}'.format(location.image_index)):
                descriptor = self.nitf.descriptor('image', location.image_index)
                self.assertEqual(location.file_type, 'jp2')
                self.assertEqual(location.offset, descriptor.data_offset)
                self.assertEqual(location.length, descriptor.data_length)
                self.assertEqual(read_jp2(self.nitf, location), self.nitf.extract_data(descriptor))

    def test_locate_single(self):
        location = locate_jp2(self.data, 0)
        self.assertEqual(
            location,
            JP2Location(0, self.nitf.descriptor('image', 0).data_offset, len(make_jp2()), 'jp2'))
        self.assertEqual(extract_jp2_index(self.data, 0), make_jp2())

    def test_not_jpeg2000(self):
        with self.assertRaises(NotJp2Compressed) as context:
            locate_jp2(self.nitf, 1)
        self.assertEqual(context.exception.index, 1)
        with self.assertRaises(NotJp2Compressed):
            extract_jp2_index(self.nitf, 1)

    def test_out_of_range(self):
        with self.assertRaises(IndexOutOfRange):
            locate_jp2(self.nitf, 3)
        with self.assertRaises(IndexOutOfRange):
            extract_jp2_index(self.nitf, 3)


def _single(data, IC='C8'):
    return NitfFile(build_nitf(images=[image_segment(data=data, IC=IC)]))


def test_masked():
    jp2 = make_jp2()
    nitf = _single(mask_table(24) + jp2, IC='M8')
    location = locate_jp2(nitf, 0)
    assert location.offset == nitf.descriptor('image', 0).data_offset + 24
    assert read_jp2(nitf, location) == jp2


def test_masked_failures():
    with pytest.raises(TruncatedInput):
        locate_jp2(_single(b'\x00\x00', IC='M8'), 0)
    with pytest.raises(MalformedHeader):
        locate_jp2(_single(struct.pack('>I', 100) + make_jp2()[:20], IC='M8'), 0)


def test_trailing_padding():
    jp2 = make_jp2()
    nitf = _single(jp2 + b'\x00'*10)
    location = locate_jp2(nitf, 0)
    assert location.length == len(jp2)
    assert extract_jp2_index(nitf, 0) == jp2


def test_extended_length_box():
    jp2 = make_jp2(extended=True)
    nitf = _single(jp2 + b'\xff'*3)
    assert extract_jp2_index(nitf, 0) == jp2


def test_box_to_end():
    jp2 = JP2_SIGNATURE + jp2_box(b'ftyp', b'jp2 \x00\x00\x00\x00jp2 ') + \
        struct.pack('>I4s', 0, b'jp2c') + CODESTREAM
    nitf = _single(jp2)
    location = locate_jp2(nitf, 0)
    assert location.file_type == 'jp2'
    assert location.length == len(jp2)


def test_bare_codestream():
    nitf = _single(CODESTREAM)
    location = locate_jp2(nitf, 0)
    assert location.file_type == 'j2k'
    assert location.extension == '.j2k'
    assert read_jp2(nitf, location) == CODESTREAM


class TestMalformed(unittest.TestCase):
    def test_malformed(self):
        no_codestream = JP2_SIGNATURE + jp2_box(b'ftyp', b'jp2 \x00\x00\x00\x00jp2 ')
        bad_box_length = JP2_SIGNATURE + struct.pack('>I4s', 4, b'ftyp') + b'\x00'*20
        for name, data in [
                ('unrecognized', b'\x00'*16),
                ('empty', b''),
                ('truncated box', make_jp2()[:-5]),
                ('no codestream box', no_codestream),
                ('short box header', no_codestream + b'\x00\x00\x00'),
                ('invalid box length', bad_box_length)]:
            with self.subTest(msg=name):
                nitf = _single(data)
                with self.assertRaises(MalformedHeader):
                    locate_jp2(nitf, 0)
                # isolated, in bulk
                self.assertEqual(locate_all_jp2(nitf), [])


def test_extract_all(tmp_path):
    data = build_nitf(images=[
        image_segment(data=make_jp2(), IC='C8'),
        image_segment(data=b'\x00'*16),
        image_segment(data=b'\x00'*16, IC='C8'),
        image_segment(data=CODESTREAM, IC='C8')])
    out_directory = tmp_path / 'output'
    written = extract_all_jp2(data, out_directory, prefix='image_')
    assert written == [
        os.path.join(str(out_directory), 'image_0.jp2'),
        os.path.join(str(out_directory), 'image_3.j2k')]
    assert (out_directory / 'image_0.jp2').read_bytes() == make_jp2()
    assert (out_directory / 'image_3.j2k').read_bytes() == CODESTREAM


def test_extract_all_none(tmp_path):
    data = build_nitf(images=[image_segment()])
    assert extract_all_jp2(data, tmp_path) == []
    assert os.listdir(str(tmp_path)) == []


def test_unknown_compression():
    nitf = _single(CODESTREAM, IC='C9')
    with pytest.raises(NotJp2Compressed):
        locate_jp2(nitf, 0)
    assert nitf.parse_subheader('image', 0).IC == 'C9'
    assert locate_all_jp2(nitf) == []


def test_extract_all_truncated_source(tmp_path):
    data = build_nitf(images=[
        image_segment(data=make_jp2(), IC='C8'),
        image_segment(data=CODESTREAM, IC='C8')])
    nitf = NitfFile(data[:-10], strict=False)
    assert len(locate_all_jp2(nitf)) == 2

    out_directory = tmp_path / 'output'
    written = extract_all_jp2(nitf, out_directory)
    assert written == [os.path.join(str(out_directory), '0.jp2')]
    assert (out_directory / '0.jp2').read_bytes() == make_jp2()
    assert sorted(os.listdir(str(out_directory))) == ['0.jp2']
