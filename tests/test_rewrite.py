import os
import tempfile
from io import BytesIO

import pytest

from nitfgnr.errors import IncompatibleTarget
from nitfgnr.nitf import NitfFile
from nitfgnr.segments import SegmentCategory
from nitfgnr.rewrite import copy_categories, copy_categories_in_place, copy_des_segments_from_paths, \
    copy_graphic_segments_from_paths, copy_text_segments_from_paths, copy_gtd_segments_from_paths

from tests import unittest, build_nitf, image_segment, graphic_segment, text_segment, des_segment, \
    res_segment, sample_file


def _segment_bytes(nitf, category):
    return [nitf.extract_header(entry) + nitf.extract_data(entry) for entry in nitf.list(category)]


def _target():
    return build_nitf(
        images=[image_segment(data=b'\x01'*32)],
        texts=[text_segment(data=b'target text')],
        des=[des_segment(data=b'target des')],
        title='TARGET', classification='U')


def _source():
    return build_nitf(
        graphics=[graphic_segment()],
        texts=[text_segment(data=b'source text')],
        des=[des_segment(data=b'source des 0'), des_segment(data=b'source des 1', DESID='OTHER')],
        res=[res_segment()],
        title='SOURCE', classification='C')


class TestCopyCategories(unittest.TestCase):
    def setUp(self):
        self.target = _target()
        self.source = _source()
        self.target_nitf = NitfFile(self.target)
        self.source_nitf = NitfFile(self.source)

    def test_append_des(self):
        out = copy_categories(self.source, self.target, 'des')
        nitf = NitfFile(out)
        with self.subTest(msg='structure'):
            self.assertEqual(nitf.file_length, len(out))
            self.assertEqual(nitf.header.to_bytes(), out[:nitf.header_length])
        with self.subTest(msg='des counts are additive'):
            self.assertEqual(nitf.count('des'), 3)
            self.assertEqual(
                _segment_bytes(nitf, 'des'),
                _segment_bytes(self.target_nitf, 'des') + _segment_bytes(self.source_nitf, 'des'))
        with self.subTest(msg='unselected categories are unchanged'):
            for category in ['image', 'graphic', 'text', 'res']:
                self.assertEqual(_segment_bytes(nitf, category), _segment_bytes(self.target_nitf, category))
        with self.subTest(msg='target header is preserved'):
            self.assertEqual(nitf.header.FTITLE, 'TARGET')
            self.assertEqual(nitf.header.Security.CLAS, 'U')
            self.assertEqual(out[:342], self.target[:342])

    def test_replace(self):
        out = copy_categories(self.source, self.target, ['text', SegmentCategory.DES], mode='replace')
        nitf = NitfFile(out)
        self.assertEqual(nitf.count('des'), 2)
        self.assertEqual(nitf.count('text'), 1)
        self.assertEqual(_segment_bytes(nitf, 'des'), _segment_bytes(self.source_nitf, 'des'))
        self.assertEqual(_segment_bytes(nitf, 'text'), _segment_bytes(self.source_nitf, 'text'))
        self.assertEqual(_segment_bytes(nitf, 'image'), _segment_bytes(self.target_nitf, 'image'))

    def test_all_categories(self):
        out = copy_categories(self.source, self.target, SegmentCategory.ordered())
        nitf = NitfFile(out)
        for category in SegmentCategory.ordered():
            with self.subTest(msg=category.value):
                self.assertEqual(
                    _segment_bytes(nitf, category),
                    _segment_bytes(self.target_nitf, category) + _segment_bytes(self.source_nitf, category))

    def test_output_sink(self):
        sink = BytesIO()
        self.assertIsNone(copy_categories(self.source_nitf, self.target_nitf, 'des', output=sink))
        self.assertEqual(sink.getvalue(), copy_categories(self.source, self.target, 'des'))

    def test_small_chunks(self):
        self.assertEqual(
            copy_categories(self.source, self.target, 'des', chunk_size=3),
            copy_categories(self.source, self.target, 'des'))

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            copy_categories(self.source, self.target, 'des', mode='merge')
        with self.assertRaises(ValueError):
            copy_categories(self.source, self.target, 'symbol')
        with self.assertRaises(ValueError):
            copy_categories(self.source, self.target, [])


def test_into_empty_skeleton():
    source = sample_file()
    out = copy_categories(source, build_nitf(), SegmentCategory.ordered())
    # the skeleton shares every other header field with the source
    assert out == source


def test_copy_nothing_is_identity():
    target = _target()
    assert copy_categories(build_nitf(), target, 'des') == target
    assert copy_categories(build_nitf(), target, ['graphic', 'res']) == target


def test_replace_is_idempotent():
    source, target = _source(), _target()
    once = copy_categories(source, target, 'des', mode='replace')
    twice = copy_categories(source, once, 'des', mode='replace')
    assert once == twice


def test_incompatible_target():
    source = _source()
    with pytest.raises(IncompatibleTarget):
        copy_categories(source, b'JUNK'*200, 'des')
    with pytest.raises(IncompatibleTarget):
        copy_categories(source, _target()[:-10], 'des')

    inconsistent = NitfFile(_target()[:-10], strict=False)
    with pytest.raises(IncompatibleTarget):
        copy_categories(source, inconsistent, 'des')


def test_too_many_segments():
    segment = des_segment(data=b'')
    source = build_nitf(des=[segment]*600)
    target = build_nitf(des=[segment]*600)
    with pytest.raises(IncompatibleTarget) as context:
        copy_categories(source, target, 'des')
    assert context.value.category == 'des'
    # replacing is fine
    assert NitfFile(copy_categories(source, target, 'des', mode='replace')).count('des') == 600


class TestPathHelpers(unittest.TestCase):
    def setUp(self):
        self._directory = tempfile.TemporaryDirectory()
        self.source_path = os.path.join(self._directory.name, 'source.ntf')
        self.target_path = os.path.join(self._directory.name, 'target.ntf')
        self.source = _source()
        self.target = _target()
        with open(self.source_path, 'wb') as fo:
            fo.write(self.source)
        with open(self.target_path, 'wb') as fo:
            fo.write(self.target)

    def tearDown(self):
        self._directory.cleanup()

    def _read(self, path):
        with open(path, 'rb') as fi:
            return fi.read()

    def test_helpers(self):
        for function, categories in [
                (copy_des_segments_from_paths, ['des']),
                (copy_graphic_segments_from_paths, ['graphic']),
                (copy_text_segments_from_paths, ['text']),
                (copy_gtd_segments_from_paths, ['graphic', 'text', 'des'])]:
            with self.subTest(msg=function.__name__):
                with open(self.target_path, 'wb') as fo:
                    fo.write(self.target)
                function(self.source_path, self.target_path)
                self.assertEqual(self._read(self.target_path), copy_categories(self.source, self.target, categories))
                self.assertEqual(self._read(self.source_path), self.source)
                self.assertEqual(sorted(os.listdir(self._directory.name)), ['source.ntf', 'target.ntf'])

    def test_failure_leaves_target(self):
        bad_target = self.target[:-10]
        with open(self.target_path, 'wb') as fo:
            fo.write(bad_target)
        with self.assertRaises(IncompatibleTarget):
            copy_categories_in_place(self.source_path, self.target_path, 'des')
        self.assertEqual(self._read(self.target_path), bad_target)
        self.assertEqual(sorted(os.listdir(self._directory.name)), ['source.ntf', 'target.ntf'])

    def test_missing_target(self):
        with self.assertRaises(IncompatibleTarget):
            copy_des_segments_from_paths(self.source_path, os.path.join(self._directory.name, 'missing.ntf'))


def test_target_preamble_space_padded():
    # FSCOP and FSCPYS occupy bytes 286-296, following the security tags
    target = build_nitf(des=[des_segment(data=b'target')])
    target = target[:286] + b'    1    2' + target[296:]
    output = copy_categories(build_nitf(des=[des_segment()]), target, 'des')
    assert output[:342] == target[:342]
    with NitfFile(output) as nitf:
        assert nitf.header.FSCOP == 1
        assert nitf.header.FSCPYS == 2
        assert nitf.count('des') == 2
