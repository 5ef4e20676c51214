import os
import tempfile
from io import BytesIO

import pytest

from nitfgnr import api
from nitfgnr.errors import IndexOutOfRange, IncompatibleTarget
from nitfgnr.nitf import NitfFile

from tests import unittest, build_nitf, des_segment, image_segment, make_jp2, sample_file


class TestQueries(unittest.TestCase):
    def setUp(self):
        self.data = sample_file()

    def _inputs(self, directory):
        path = os.path.join(directory, 'sample.ntf')
        with open(path, 'wb') as fo:
            fo.write(self.data)
        return [('bytes', self.data), ('path', path), ('file', BytesIO(self.data)), ('parsed', NitfFile(self.data))]

    def test_queries(self):
        with tempfile.TemporaryDirectory() as directory:
            for name, file_object in self._inputs(directory):
                with self.subTest(msg=name):
                    self.assertEqual(api.get_version(file_object), 'NITF02.10')
                    self.assertEqual(api.get_file_length(file_object), len(self.data))
                    self.assertEqual(api.get_header_length(file_object), int(self.data[354:360]))
                    self.assertEqual(api.get_num_images(file_object), 2)
                    self.assertEqual(api.get_num_graphics(file_object), 1)
                    self.assertEqual(api.get_num_text(file_object), 2)
                    self.assertEqual(api.get_num_des(file_object), 2)
                    self.assertEqual(api.get_num_res(file_object), 1)

    def test_extract_des(self):
        header = api.extract_des_header(self.data, 1)
        data = api.extract_des_data(self.data, 1)
        self.assertEqual(header[:2], b'DE')
        self.assertEqual(data, b'second des')
        self.assertEqual(api.extract_des(self.data, 1), header + data)

    def test_extract_des_out_of_range(self):
        count = api.get_num_des(self.data)
        for function in [api.extract_des, api.extract_des_header, api.extract_des_data]:
            with self.subTest(msg=function.__name__):
                with self.assertRaises(IndexOutOfRange):
                    function(self.data, count)

    def test_jp2(self):
        self.assertEqual(api.extract_jp2_index(self.data, 0), make_jp2())


def test_extract_all_jp2(tmp_path):
    path = tmp_path / 'sample.ntf'
    path.write_bytes(sample_file())
    written = api.extract_all_jp2(str(path), str(tmp_path / 'jp2'))
    assert written == [os.path.join(str(tmp_path / 'jp2'), '0.jp2')]


def test_copy_des_segments_path(tmp_path):
    source = build_nitf(des=[des_segment(data=b'one'), des_segment(data=b'two')])
    target = build_nitf(images=[image_segment()], des=[des_segment(data=b'zero')])
    source_path = tmp_path / 'source.ntf'
    target_path = tmp_path / 'target.ntf'
    source_path.write_bytes(source)
    target_path.write_bytes(target)

    api.copy_des_segments(str(source_path), str(target_path))
    assert api.get_num_des(str(target_path)) == 3
    assert [api.extract_des_data(str(target_path), i) for i in range(3)] == [b'zero', b'one', b'two']
    assert api.get_num_images(str(target_path)) == 1
    assert api.get_file_length(str(target_path)) == os.path.getsize(str(target_path))


def test_copy_des_segments_handle(tmp_path):
    source = build_nitf(des=[des_segment(data=b'one')])
    target = build_nitf(images=[image_segment()], des=[des_segment(data=b'zero')] * 3)
    target_path = tmp_path / 'target.ntf'
    target_path.write_bytes(target)

    with open(str(target_path), 'r+b') as fi:
        api.copy_des_segments(source, fi)
    assert api.get_num_des(str(target_path)) == 4
    assert api.extract_des_data(str(target_path), 3) == b'one'
    assert api.get_file_length(str(target_path)) == os.path.getsize(str(target_path))


def test_copy_des_segments_incompatible(tmp_path):
    source = build_nitf(des=[des_segment()])
    target_path = tmp_path / 'target.ntf'
    target_path.write_bytes(b'not a nitf file'*40)
    with pytest.raises(IncompatibleTarget):
        api.copy_des_segments(source, str(target_path))
    assert target_path.read_bytes() == b'not a nitf file'*40

    with pytest.raises(TypeError):
        api.copy_des_segments(source, 12)


def test_extract_all_des(tmp_path):
    data = sample_file()
    written = api.extract_all_des(data, tmp_path / 'des', prefix='des_')
    assert [os.path.basename(entry) for entry in written] == ['des_0.des', 'des_1.des']
    for index, path in enumerate(written):
        with open(path, 'rb') as fi:
            assert fi.read() == api.extract_des(data, index)


def test_extract_all_des_truncated(tmp_path):
    data = build_nitf(des=[des_segment(data=b'first'), des_segment(data=b'second des')])
    nitf = NitfFile(data[:-4], strict=False)
    written = api.extract_all_des(nitf, tmp_path)
    assert written == [os.path.join(str(tmp_path), '0.des')]
    assert sorted(os.listdir(str(tmp_path))) == ['0.des']


def test_package_metadata():
    import nitfgnr
    from nitfgnr import jp2, nitf, rewrite
    assert nitfgnr.__author__ == 'nitfgnr contributors'
    assert nitfgnr.__version__.startswith('0.3.0')
    for module in (api, jp2, nitf, rewrite):
        assert module.__author__ == nitfgnr.__author__
