"""
A command-line utility for inspecting NITF files, and for extracting or
copying their segments.

Print the file header and every subheader

>>> python -m nitfgnr.utils.nitf_utils dump <path to nitf file>

Write the JPEG 2000 data of each JPEG 2000 image segment into a directory

>>> python -m nitfgnr.utils.nitf_utils jp2 <path to nitf file> <output directory>

Write every data extension segment into a directory, or only the given one to a file

>>> python -m nitfgnr.utils.nitf_utils des <path to nitf file> <output directory>

>>> python -m nitfgnr.utils.nitf_utils des <path to nitf file> <output file> --index <index>

Append the data extension segments of one file to those of another

>>> python -m nitfgnr.utils.nitf_utils copy <source file> <target file> --categories des

Each command documents its options, see

>>> python -m nitfgnr.utils.nitf_utils <command> --help
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import argparse
import json
import logging
import os
import sys
from io import StringIO
from typing import Union, BinaryIO, TextIO, Optional, List

from nitfgnr.errors import NitfError
from nitfgnr.file_utils import is_nitf
from nitfgnr.nitf import NitfFile
from nitfgnr.segments import SegmentCategory
from nitfgnr.nitf_elements.base import BaseNITFElement, NITFElement, NITFLoop, UserHeaderType, Unstructured
from nitfgnr import api, jp2
from nitfgnr.rewrite import copy_categories, copy_categories_in_place, COPY_MODES


logger = logging.getLogger(__name__)

# the security field prefix for each header type
_SECURITY_PREFIX = {
    None: 'FS',
    SegmentCategory.IMAGE: 'IS',
    SegmentCategory.GRAPHIC: 'SS',
    SegmentCategory.TEXT: 'TS',
    SegmentCategory.DES: 'DES',
    SegmentCategory.RES: 'RES'}

# image data is never printed
_DATA_LABEL = {
    SegmentCategory.GRAPHIC: 'SDATA',
    SegmentCategory.TEXT: 'TDATA',
    SegmentCategory.DES: 'DESDATA',
    SegmentCategory.RES: 'RESDATA'}


def _as_text(value: bytes) -> Union[bytes, str]:
    """
    The ascii decoding of `value`, or `value` itself if it is not ascii.
    """

    try:
        return value.decode('ascii')
    except UnicodeDecodeError:
        return value


def _json_default(value):
    if isinstance(value, bytes):
        text = _as_text(value)
        return text if isinstance(text, str) else value.hex()
    raise TypeError('Object of type {} is not JSON serializable'.format(type(value).__name__))


############
# text rendering

class _HeaderPrinter(object):
    """
    Writes `name = value` lines for header elements to a text stream.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream

    def line(self, text: str = '') -> None:
        self.stream.write(text + '\n')

    def value(self, name: str, value, prefix: str = '') -> None:
        if value is None:
            value = ''
        elif isinstance(value, bytes):
            value = _as_text(value)
        self.line('{}{} = {}'.format(prefix, name, value))

    def element(self, elem: Optional[NITFElement], prefix: str = '', security_prefix: str = 'FS') -> None:
        if elem is None:
            return

        # noinspection PyProtectedMember
        for name in elem._ordering:
            # noinspection PyProtectedMember
            if elem._field_length(name) == 0:
                continue  # conditional, and absent
            item = getattr(elem, name)
            if name == 'Security':
                self.element(item, prefix=prefix+security_prefix)
            elif isinstance(item, NITFLoop):
                for j, entry in enumerate(item):
                    self.element(entry, prefix='{}{}[{}].'.format(prefix, name, j))
            elif isinstance(item, UserHeaderType):
                if item.data:
                    self.value(name + '.OFL', item.OFL, prefix=prefix)
                    self.value(name + '.data', item.data, prefix=prefix)
            elif isinstance(item, Unstructured):
                if item.data:
                    self.value(name, item.data, prefix=prefix)
            elif isinstance(item, BaseNITFElement):
                continue  # length tables, summarized by segment counts
            else:
                self.value(name, item, prefix=prefix)

    def nitf(self, nitf_file: NitfFile, title: Optional[str] = None) -> None:
        if title is not None:
            self.line()
            self.line('Details for file {}'.format(title))
            self.line()

        self.line('----- File Header -----')
        self.element(nitf_file.nitf_header, security_prefix=_SECURITY_PREFIX[None])
        for category, count in nitf_file.index.counts().items():
            self.line('{} segments = {}'.format(category, count))
        self.line()

        for category in SegmentCategory.ordered():
            for descriptor in nitf_file.list(category):
                self.line('----- {} {} -----'.format(category.label.title(), descriptor.index))
                self.line('offset = {}, subheader length = {}, data length = {}'.format(
                    descriptor.offset, descriptor.header_length, descriptor.data_length))
                self.element(
                    nitf_file.parse_subheader(category, descriptor.index),
                    security_prefix=_SECURITY_PREFIX[category])
                if category in _DATA_LABEL:
                    self.value(_DATA_LABEL[category], nitf_file.extract_data(descriptor))
                self.line()


def print_nitf(file_name: Union[str, BinaryIO], dest: TextIO = sys.stdout) -> None:
    """
    Write the file header, and each segment subheader and (non-image) data,
    as text.

    Parameters
    ----------
    file_name : str|BinaryIO
    dest : TextIO
    """

    with NitfFile(file_name) as nitf_file:
        _HeaderPrinter(dest).nitf(nitf_file, title=file_name if isinstance(file_name, str) else None)


def dump_nitf_file(
        file_name: Union[str, BinaryIO],
        dest: str,
        over_write: bool = True) -> Optional[str]:
    """
    Write the text rendering of :func:`print_nitf` to the given destination.

    Parameters
    ----------
    file_name : str|BinaryIO
        The NITF file path, or a binary file object.
    dest : str
        One of :code:`'stdout'`, :code:`'string'`, :code:`'default'`, or an
        output path. The default destination is the input path with extension
        replaced by `.header_dump.txt`.
    over_write : bool
        Truncate an existing output file? Otherwise, append to it.

    Returns
    -------
    None|str
        The text, for :code:`dest='string'`.
    """

    if dest == 'stdout':
        print_nitf(file_name, dest=sys.stdout)
        return None
    if dest == 'string':
        with StringIO() as out:
            print_nitf(file_name, dest=out)
            return out.getvalue()

    if dest == 'default':
        if not isinstance(file_name, str):
            raise ValueError('The default destination requires a file path input')
        dest = os.path.splitext(file_name)[0] + '.header_dump.txt'
    with open(dest, 'w' if over_write else 'a') as fo:
        print_nitf(file_name, dest=fo)
    return None


def dump_nitf_json(file_name: Union[str, BinaryIO], dest: TextIO = sys.stdout) -> None:
    """
    Write the headers, as given by :meth:`NitfFile.get_headers_json`, as json.
    Byte values are written as text when ascii, and as hex otherwise.
    """

    with NitfFile(file_name) as nitf_file:
        json.dump(nitf_file.get_headers_json(), dest, indent=1, default=_json_default)
    dest.write('\n')


##########
# command-line entry

def _dump_command(args):
    if args.json:
        dump_nitf_json(args.input_file, dest=sys.stdout)
    else:
        dump_nitf_file(args.input_file, args.output)


def _jp2_command(args):
    if args.index is None:
        written = jp2.extract_all_jp2(args.input_file, args.output, prefix=args.prefix)
        print('Wrote {} JPEG 2000 files to {}'.format(len(written), args.output))
    else:
        data = api.extract_jp2_index(args.input_file, args.index)
        with open(args.output, 'wb') as fo:
            fo.write(data)
        print('Wrote {} bytes to {}'.format(len(data), args.output))


def _des_command(args):
    if args.index is None:
        written = api.extract_all_des(args.input_file, args.output, prefix=args.prefix)
        print('Wrote {} data extension segments to {}'.format(len(written), args.output))
        return

    if args.part == 'header':
        data = api.extract_des_header(args.input_file, args.index)
    elif args.part == 'data':
        data = api.extract_des_data(args.input_file, args.index)
    else:
        data = api.extract_des(args.input_file, args.index)
    with open(args.output, 'wb') as fo:
        fo.write(data)
    print('Wrote {} bytes to {}'.format(len(data), args.output))


def _copy_command(args):
    if args.output is None:
        copy_categories_in_place(args.source, args.target, args.categories, mode=args.mode)
        print('Rewrote {}'.format(args.target))
    else:
        with open(args.output, 'wb') as fo:
            copy_categories(args.source, args.target, args.categories, output=fo, mode=args.mode)
        print('Wrote {}'.format(args.output))


def _create_parser():
    parser = argparse.ArgumentParser(
        description='Utility for inspecting NITF 2.1 and NSIF 1.0 files, and for '
                    'extracting or copying their segments.',
        formatter_class=argparse.RawTextHelpFormatter)
    subparsers = parser.add_subparsers(dest='command')
    subparsers.required = True

    dump = subparsers.add_parser('dump', help='Dump the file header and subheaders.')
    dump.add_argument('input_file', help='The path to a nitf file.')
    dump.add_argument(
        '-o', '--output', default='stdout',
        help="Where to write the text.\n"
             "  stdout   standard out, the default\n"
             "  default  <input path without extension>.header_dump.txt\n"
             "  <path>   the given file\n"
             "An existing output file is replaced.")
    dump.add_argument('--json', action='store_true', help='Print the headers as json to standard out.')
    dump.set_defaults(func=_dump_command)

    jp2_parser = subparsers.add_parser('jp2', help='Extract the JPEG 2000 data from the image segments.')
    jp2_parser.add_argument('input_file', help='The path to a nitf file.')
    jp2_parser.add_argument(
        'output',
        help='The output directory, or the output file when an index is given.')
    jp2_parser.add_argument('-i', '--index', type=int, default=None, help='Extract only this image segment.')
    jp2_parser.add_argument('-p', '--prefix', default='', help='The output file name prefix.')
    jp2_parser.set_defaults(func=_jp2_command)

    des = subparsers.add_parser('des', help='Extract the data extension segments.')
    des.add_argument('input_file', help='The path to a nitf file.')
    des.add_argument(
        'output',
        help='The output directory, or the output file when an index is given.')
    des.add_argument('-i', '--index', type=int, default=None, help='Extract only this data extension segment.')
    des.add_argument('-p', '--prefix', default='', help='The output file name prefix.')
    des.add_argument(
        '--part', choices=['all', 'header', 'data'], default='all',
        help='With an index, the subheader, the data, or both (the default).\n'
             'Without an index, each file holds the subheader followed by the data.')
    des.set_defaults(func=_des_command)

    copy = subparsers.add_parser('copy', help='Copy segment categories from one file into another.')
    copy.add_argument('source', help='The file providing the segments.')
    copy.add_argument('target', help='The file providing the header and remaining segments.')
    copy.add_argument(
        '-c', '--categories', nargs='+', default=['des'],
        choices=[entry.value for entry in SegmentCategory.ordered()],
        help='The segment categories to copy.')
    copy.add_argument('-m', '--mode', choices=COPY_MODES, default='append', help='The copy mode.')
    copy.add_argument(
        '-o', '--output', default=None,
        help='The output file. If not provided, the target file is rewritten.')
    copy.set_defaults(func=_copy_command)
    return parser


def main(arguments=None):
    # type: (Optional[List[str]]) -> int
    """
    The command-line entry point.

    Parameters
    ----------
    arguments : None|List[str]
        The arguments, defaulting to `sys.argv[1:]`.

    Returns
    -------
    int
        The exit status.
    """

    args = _create_parser().parse_args(arguments)
    inputs = [args.source, args.target] if args.command == 'copy' else [args.input_file, ]
    for input_file in inputs:
        if not is_nitf(input_file):
            logger.error('Failed {}, since {} is not a NITF file'.format(args.command, input_file))
            return 1

    try:
        args.func(args)
    except NitfError as e:
        logger.error('Failed {} with error {}'.format(args.command, e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
