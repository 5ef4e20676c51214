import json
import os

import pytest

from nitfgnr.nitf import NitfFile
from nitfgnr.utils import nitf_utils

from tests import build_nitf, des_segment, make_jp2, sample_file


@pytest.fixture
def sample_path(tmp_path):
    path = tmp_path / 'sample.ntf'
    path.write_bytes(sample_file())
    return str(path)


def test_dump_string(sample_path):
    out = nitf_utils.dump_nitf_file(sample_path, 'string')
    assert 'Details for file {}'.format(sample_path) in out
    assert '----- File Header -----' in out
    assert 'FTITLE = TEST FILE' in out
    assert 'FSCLAS = U' in out
    assert 'des segments = 2' in out
    assert '----- Image 1 -----' in out
    assert '----- Data Extension 1 -----' in out
    assert 'DESDATA = second des' in out
    assert 'UserHeader = abcd' in out


def test_dump_file(sample_path, tmp_path):
    output = str(tmp_path / 'dump.txt')
    nitf_utils.dump_nitf_file(sample_path, output)
    with open(output, 'r') as fi:
        assert 'TDATA = Some text content.' in fi.read()

    nitf_utils.dump_nitf_file(sample_path, 'default')
    assert os.path.isfile(os.path.splitext(sample_path)[0] + '.header_dump.txt')


def test_main_dump_json(sample_path, capsys):
    assert nitf_utils.main(['dump', sample_path, '--json']) == 0
    out = json.loads(capsys.readouterr().out)
    assert out['header']['FTITLE'] == 'TEST FILE'
    assert len(out['DES_Subheaders']) == 2
    assert out['DES_Subheaders'][1]['UserHeader']['data'] == 'abcd'


def test_main_des(sample_path, tmp_path):
    output = str(tmp_path / 'des.bin')
    assert nitf_utils.main(['des', sample_path, output, '--index', '1', '--part', 'data']) == 0
    with open(output, 'rb') as fi:
        assert fi.read() == b'second des'


def test_main_jp2(sample_path, tmp_path):
    output = tmp_path / 'jp2'
    assert nitf_utils.main(['jp2', sample_path, str(output), '--prefix', 'out_']) == 0
    assert (output / 'out_0.jp2').read_bytes() == make_jp2()

    single = tmp_path / 'single.jp2'
    assert nitf_utils.main(['jp2', sample_path, str(single), '--index', '0']) == 0
    assert single.read_bytes() == make_jp2()
    # not JPEG 2000 compressed
    assert nitf_utils.main(['jp2', sample_path, str(single), '--index', '1']) == 1


def test_main_copy(sample_path, tmp_path):
    target = tmp_path / 'target.ntf'
    target.write_bytes(build_nitf(des=[des_segment(data=b'target')]))
    output = str(tmp_path / 'output.ntf')
    assert nitf_utils.main(['copy', sample_path, str(target), '-c', 'des', 'text', '-o', output]) == 0
    with NitfFile(output) as nitf:
        assert nitf.count('des') == 3
        assert nitf.count('text') == 2
        assert nitf.count('image') == 0

    assert nitf_utils.main(['copy', sample_path, str(target), '--mode', 'replace']) == 0
    with NitfFile(str(target)) as nitf:
        assert nitf.count('des') == 2


def test_main_failure(sample_path, tmp_path, caplog):
    path = tmp_path / 'junk.ntf'
    path.write_bytes(b'JUNK'*100)
    assert nitf_utils.main(['des', str(path), str(tmp_path / 'out.bin'), '-i', '0']) == 1
    assert 'is not a NITF file' in caplog.text
    assert not os.path.exists(str(tmp_path / 'out.bin'))
    assert nitf_utils.main(['copy', sample_path, str(path)]) == 1

    # a NITF file, but the index is out of range
    assert nitf_utils.main(['des', sample_path, str(tmp_path / 'out.bin'), '-i', '5']) == 1


def test_main_des_all(sample_path, tmp_path):
    output = tmp_path / 'des'
    assert nitf_utils.main(['des', sample_path, str(output), '--prefix', 'seg_']) == 0
    assert sorted(os.listdir(str(output))) == ['seg_0.des', 'seg_1.des']
    second = (output / 'seg_1.des').read_bytes()
    assert second[:2] == b'DE'
    assert second.endswith(b'second des')
