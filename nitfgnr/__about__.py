# MIT License
#
# Copyright (c) 2020 nitfgnr contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.


__all__ = ['__version__',
           '__classification__', '__author__',
           '__title__', '__summary__',
           '__license__', '__copyright__']

from nitfgnr.__details__ import __classification__, _post_identifier
_version_number = '0.3.0'

__version__ = _version_number + _post_identifier

__author__ = "nitfgnr contributors"


__title__ = "nitfgnr"
__summary__ = "Python tools for parsing, segment extraction, segment copying and " \
              "JPEG 2000 codestream extraction for NITF container files."


__license__ = "MIT License"
__copyright__ = "2020 {}".format(__author__)
