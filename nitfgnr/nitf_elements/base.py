"""
The building blocks for the NITF header and subheader models.

A header model is a :class:`NITFElement` subclass. Its fixed width fields are
declared as class level descriptors, and serialized in the order given by the
class `_ordering`. A field may be conditional, in which case it occupies no
bytes unless its `present` predicate holds for the element.
"""

__classification__ = "UNCLASSIFIED"
__author__ = "nitfgnr contributors"


import logging
from collections import OrderedDict
from typing import Union, Tuple, Optional, Callable, Iterator, Sequence

import numpy

from nitfgnr.cursor import parse_ascii_int
from nitfgnr.errors import TruncatedInput, MalformedHeader


logger = logging.getLogger(__name__)

# every byte value survives a decode/encode round trip
TEXT_CODEC = 'latin-1'
# the element `__dict__` key holding the original text of parsed integer fields
_PARSED_TEXT = '_parsed_text'


def _require(value: bytes, start: int, length: int, name: str, owner) -> None:
    """
    Verify that `length` bytes of `value` are available at `start`.

    Raises
    ------
    TruncatedInput
    """

    if start + length > len(value):
        raise TruncatedInput(
            '{} requires {} bytes for {}, but only {} remain'.format(
                owner.__name__, length, name, max(0, len(value) - start)),
            field=name, offset=start)


def _format_int(value: int, digits: int) -> bytes:
    return '{0:0{1}d}'.format(value, digits).encode('ascii')


class BaseNITFElement(object):
    """
    The serialization interface shared by all header elements.
    """

    def get_bytes_length(self) -> int:
        """
        The length of the serialized element.

        Returns
        -------
        int
        """

        raise NotImplementedError

    def to_bytes(self) -> bytes:
        """
        Serialize the element.

        Returns
        -------
        bytes
        """

        raise NotImplementedError

    @classmethod
    def from_bytes(cls, value: bytes, start: int):
        """
        Parse the element from `value`, beginning at `start`.

        Parameters
        ----------
        value : bytes
        start : int

        Returns
        -------
        BaseNITFElement

        Raises
        ------
        TruncatedInput
            If `value` ends before the element does.
        MalformedHeader
            If a field violates the format constraints.
        """

        raise NotImplementedError

    def to_json(self):
        """
        A json-ready representation, intended for simple presentation.

        Returns
        -------
        dict|list
        """

        raise NotImplementedError


#########
# field descriptors

class _Field(object):
    """
    Descriptor for a single header field. The value is held in the instance
    `__dict__` under the field name.
    """

    _kind = ''

    def __init__(
            self,
            length: Optional[int],
            default=None,
            present: Optional[Callable] = None,
            doc: str = ''):
        """

        Parameters
        ----------
        length : None|int
            The fixed width, `None` for a nested element.
        default
            The default value, or a callable accepting the element and
            returning the default value.
        present : None|Callable
            Predicate accepting the element. If provided, the field occupies
            no bytes and reads as `None` whenever this is false.
        doc : str
        """

        self.name = None
        self.length = length
        self.default = default
        self.present = present
        self.__doc__ = '{} {}'.format(self._kind, doc).strip()
        if present is not None:
            self.__doc__ += ' **Conditional.**'

    def __set_name__(self, owner, name):
        self.name = name

    def is_present(self, instance) -> bool:
        return self.present is None or bool(self.present(instance))

    def get_default(self, instance):
        if callable(self.default):
            return self.default(instance)
        return self.default

    def __get__(self, instance, owner):
        if instance is None:
            return self
        if not self.is_present(instance):
            return None
        if self.name not in instance.__dict__:
            # a conditional field which was absent at assignment
            instance.__dict__[self.name] = self.get_default(instance)
        return instance.__dict__[self.name]

    def __set__(self, instance, value):
        if value is None:
            instance.__dict__[self.name] = self.get_default(instance)
            return
        if not self.is_present(instance):
            logger.warning(
                'Field {} of {} is absent for the current field values, '
                'so ignoring value {!r}'.format(self.name, instance.__class__.__name__, value))
            return
        instance.__dict__[self.name] = self.convert(instance, value)

    def convert(self, instance, value):
        """
        Validate and normalize an assigned value.
        """

        raise NotImplementedError

    def encode(self, value) -> bytes:
        """
        Render the field value at its fixed width.
        """

        raise NotImplementedError

    def render(self, instance) -> bytes:
        """
        The serialized bytes of the field for the given element.
        """

        return self.encode(self.__get__(instance, type(instance)))


class _TextField(_Field):
    """
    A space padded text field. Values outside of `values` are logged and kept,
    unless `strict`, in which case they are rejected.
    """

    _kind = 'str:'

    def __init__(
            self,
            length: int,
            default: Union[str, Callable] = '',
            values: Union[None, Sequence[str], Callable] = None,
            strict: bool = False,
            present: Optional[Callable] = None,
            doc: str = ''):
        self.values = values
        self.strict = strict
        super(_TextField, self).__init__(length, default=default, present=present, doc=doc)
        if values is not None and not callable(values):
            self.__doc__ += ' Expected values are :code:`{}`.'.format(sorted(values))

    def allowed(self, instance) -> Optional[Sequence[str]]:
        if callable(self.values):
            return self.values(instance)
        return self.values

    def convert(self, instance, value):
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode(TEXT_CODEC)
        elif not isinstance(value, str):
            value = str(value)
        value = value.rstrip(' ')
        if len(value) > self.length:
            logger.warning(
                'Truncating value of length {} for field {} of {} to {} characters'.format(
                    len(value), self.name, instance.__class__.__name__, self.length))
            value = value[:self.length]

        allowed = self.allowed(instance)
        if allowed is not None and value not in allowed:
            if self.strict:
                raise MalformedHeader(
                    'Got {!r} for {}, which must be one of {}'.format(value, self.name, sorted(allowed)),
                    field=self.name)
            logger.warning(
                'Field {} of {} got {!r}, but is expected to be one of {}'.format(
                    self.name, instance.__class__.__name__, value, sorted(allowed)))
        return value

    def encode(self, value):
        return value.ljust(self.length).encode(TEXT_CODEC)


class _IntField(_Field):
    """
    An unsigned decimal field. A `computed` field is derived from the element,
    and assignment to it is ignored.

    Values are written zero padded, except that a value parsed from text is
    written back with its original text (e.g. space padded) while unchanged.
    """

    _kind = 'int:'

    def __init__(
            self,
            length: int,
            default: Union[int, Callable] = 0,
            computed: Optional[Callable] = None,
            present: Optional[Callable] = None,
            doc: str = ''):
        self.computed = computed
        super(_IntField, self).__init__(length, default=default, present=present, doc=doc)

    def __get__(self, instance, owner):
        if instance is not None and self.computed is not None:
            return self.computed(instance)
        return super(_IntField, self).__get__(instance, owner)

    def __set__(self, instance, value):
        if self.computed is None:
            super(_IntField, self).__set__(instance, value)
        elif value is not None:
            # validated, but the derived value stands
            self.convert(instance, value)

    def convert(self, instance, value):
        text = None
        if isinstance(value, (bytes, bytearray, str)):
            text = value.encode('ascii', 'replace') if isinstance(value, str) else bytes(value)
            value = parse_ascii_int(value, name=self.name)
        value = int(value)
        if not (0 <= value < 10**self.length):
            raise ValueError(
                'Field {} of {} got {}, which does not fit in {} digits'.format(
                    self.name, instance.__class__.__name__, value, self.length))

        parsed_text = instance.__dict__.setdefault(_PARSED_TEXT, {})
        if text is not None and len(text) == self.length:
            parsed_text[self.name] = text
        else:
            parsed_text.pop(self.name, None)
        return value

    def encode(self, value):
        return _format_int(value, self.length)

    def render(self, instance):
        value = self.__get__(instance, type(instance))
        text = instance.__dict__.get(_PARSED_TEXT, {}).get(self.name, None)
        if text is not None and parse_ascii_int(text, name=self.name) == value:
            return text
        return self.encode(value)


class _RawField(_Field):
    """
    A field of uninterpreted bytes.
    """

    _kind = 'bytes:'

    def convert(self, instance, value):
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError('Field {} requires bytes, got {}'.format(self.name, type(value)))
        value = bytes(value)
        if len(value) != self.length:
            raise ValueError(
                'Field {} requires exactly {} bytes, got {}'.format(self.name, self.length, len(value)))
        return value

    def encode(self, value):
        return value


class _ElementField(_Field):
    """
    A nested element of variable length. The default is an instance of the
    element type constructed with no arguments.
    """

    def __init__(self, the_type, present: Optional[Callable] = None, doc: str = ''):
        self.the_type = the_type
        self._kind = '{}:'.format(the_type.__name__)
        super(_ElementField, self).__init__(None, present=present, doc=doc)

    def get_default(self, instance):
        return self.the_type()

    def convert(self, instance, value):
        if isinstance(value, (bytes, bytearray)):
            return self.the_type.from_bytes(bytes(value), 0)
        if not isinstance(value, self.the_type):
            raise TypeError(
                'Field {} requires bytes or {}, got {}'.format(self.name, self.the_type.__name__, type(value)))
        return value


#########
# element types

class NITFElement(BaseNITFElement):
    """
    An element composed of declared fields, serialized in `_ordering`.

    Subclasses handle any entry of `_ordering` which is not a declared field
    by extending :meth:`_field_length`, :meth:`_field_bytes` and :meth:`_read_field`.
    """

    _ordering = ()

    def __init__(self, **kwargs):
        unexpected = set(kwargs).difference(self._ordering)
        if len(unexpected) > 0:
            raise TypeError(
                '{} got unexpected fields {}'.format(self.__class__.__name__, sorted(unexpected)))
        for name in self._ordering:
            setattr(self, name, kwargs.get(name, None))

    @classmethod
    def _declared(cls, name: str) -> Optional[_Field]:
        the_field = getattr(cls, name, None)
        return the_field if isinstance(the_field, _Field) else None

    def _field_length(self, name: str) -> int:
        """
        The serialized length of the given entry of `_ordering`.
        """

        the_field = self._declared(name)
        if the_field is None:
            raise ValueError('{} has no field {}'.format(self.__class__.__name__, name))
        if not the_field.is_present(self):
            return 0
        if the_field.length is not None:
            return the_field.length
        return getattr(self, name).get_bytes_length()

    def _field_bytes(self, name: str) -> bytes:
        """
        The serialized bytes of the given entry of `_ordering`.
        """

        the_field = self._declared(name)
        if the_field is None:
            raise ValueError('{} has no field {}'.format(self.__class__.__name__, name))
        if not the_field.is_present(self):
            return b''
        value = getattr(self, name)
        if the_field.length is None:
            return value.to_bytes()
        return the_field.render(self)

    def _read_field(self, name: str, value: bytes, start: int) -> int:
        """
        Parse the given entry of `_ordering` from `value` into this element.

        Returns
        -------
        int
            The position following the field.
        """

        the_field = self._declared(name)
        if the_field is None:
            raise ValueError('{} has no field {}'.format(self.__class__.__name__, name))
        if not the_field.is_present(self):
            return start
        if the_field.length is None:
            element = the_field.the_type.from_bytes(value, start)
            setattr(self, name, element)
            return start + element.get_bytes_length()
        _require(value, start, the_field.length, name, self.__class__)
        try:
            setattr(self, name, value[start:start+the_field.length])
        except MalformedHeader as e:
            if e.offset is None:
                e.offset = start
            raise
        return start + the_field.length

    def get_bytes_length(self):
        return sum(self._field_length(name) for name in self._ordering)

    def to_bytes(self):
        return b''.join(self._field_bytes(name) for name in self._ordering)

    @classmethod
    def from_bytes(cls, value, start):
        # fields are read in order onto a default instance, so that conditional
        # fields see the values parsed before them
        out = cls()
        loc = start
        for name in cls._ordering:
            loc = out._read_field(name, value, loc)
        return out

    def to_json(self):
        out = OrderedDict()
        for name in self._ordering:
            if self._field_length(name) == 0:
                continue
            value = getattr(self, name)
            if value is None:
                out[name] = ''
            elif isinstance(value, BaseNITFElement):
                out[name] = value.to_json()
            elif isinstance(value, numpy.ndarray):
                out[name] = value.tolist()
            else:
                out[name] = value
        return out


class NITFLoop(BaseNITFElement):
    """
    A count prefixed sequence of elements of type `_entry_type`.
    """

    __slots__ = ('_values', )
    _entry_type = None
    _count_digits = 1

    def __init__(self, values=None):
        self._values = ()
        self.values = values

    @property
    def values(self) -> Tuple[NITFElement, ...]:
        """
        Tuple[NITFElement, ...]: The entries.
        """

        return self._values

    @values.setter
    def values(self, value):
        if value is None:
            self._values = ()
            return
        value = tuple(value)
        for i, entry in enumerate(value):
            if not isinstance(entry, self._entry_type):
                raise TypeError(
                    'Entry {} of {} must be of type {}, got {}'.format(
                        i, self.__class__.__name__, self._entry_type.__name__, type(entry)))
        self._values = value

    def __len__(self):
        return len(self._values)

    def __iter__(self) -> Iterator[NITFElement]:
        return iter(self._values)

    def __getitem__(self, item):
        return self._values[item]

    def _count_bytes(self) -> bytes:
        return _format_int(len(self._values), self._count_digits)

    @classmethod
    def _read_count(cls, value: bytes, start: int) -> Tuple[int, int]:
        _require(value, start, cls._count_digits, 'count', cls)
        count = parse_ascii_int(
            value[start:start+cls._count_digits], name='{} count'.format(cls.__name__), offset=start)
        return count, start + cls._count_digits

    def get_bytes_length(self):
        return len(self._count_bytes()) + sum(entry.get_bytes_length() for entry in self._values)

    def to_bytes(self):
        return self._count_bytes() + b''.join(entry.to_bytes() for entry in self._values)

    @classmethod
    def from_bytes(cls, value, start):
        count, loc = cls._read_count(value, start)
        entries = []
        for _ in range(count):
            entry = cls._entry_type.from_bytes(value, loc)
            loc += entry.get_bytes_length()
            entries.append(entry)
        return cls(values=entries)

    def to_json(self):
        return [entry.to_json() for entry in self._values]


class Unstructured(BaseNITFElement):
    """
    Opaque bytes, prefixed by a decimal length of `_length_digits` digits.
    """

    __slots__ = ('_data', )
    _length_digits = 4

    def __init__(self, data=None):
        self._data = None
        self.data = data

    @property
    def max_data_length(self) -> int:
        """
        int: The longest data representable.
        """

        return 10**self._length_digits - 1

    @property
    def data(self) -> Optional[bytes]:
        """
        None|bytes: The data, where `None` and empty are equivalent.
        """

        return self._data

    @data.setter
    def data(self, value):
        if value is None:
            self._data = None
            return
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError('data requires bytes, got {}'.format(type(value)))
        if len(value) > self.max_data_length:
            raise ValueError(
                'data of length {} exceeds the maximum {} for {}'.format(
                    len(value), self.max_data_length, self.__class__.__name__))
        self._data = bytes(value)

    def get_bytes_length(self):
        return self._length_digits + (0 if self._data is None else len(self._data))

    def to_bytes(self):
        data = b'' if self._data is None else self._data
        return _format_int(len(data), self._length_digits) + data

    @classmethod
    def _read_length(cls, value: bytes, start: int) -> int:
        _require(value, start, cls._length_digits, 'data length', cls)
        length = parse_ascii_int(
            value[start:start+cls._length_digits], name='{} length'.format(cls.__name__), offset=start)
        _require(value, start + cls._length_digits, length, 'data', cls)
        return length

    @classmethod
    def from_bytes(cls, value, start):
        length = cls._read_length(value, start)
        loc = start + cls._length_digits
        return cls(data=value[loc:loc+length] if length > 0 else None)

    def to_json(self):
        return OrderedDict([('data', b'' if self._data is None else self._data)])


class UserHeaderType(Unstructured):
    """
    A user defined or extended header. The five digit length, when nonzero,
    counts a three digit overflow field followed by the tagged record
    extensions, which are kept as opaque bytes.
    """

    __slots__ = ('_ofl', )
    _length_digits = 5
    _ofl_digits = 3

    def __init__(self, OFL=0, data=None):
        self._ofl = 0
        self.OFL = OFL
        super(UserHeaderType, self).__init__(data=data)

    @property
    def max_data_length(self) -> int:
        return 10**self._length_digits - 1 - self._ofl_digits

    @property
    def OFL(self) -> int:
        """
        int: The index of the DES holding overflowed extensions, :code:`0` for none.
        """

        return self._ofl

    @OFL.setter
    def OFL(self, value):
        if value is None:
            value = 0
        elif isinstance(value, (bytes, str)):
            value = parse_ascii_int(value, name='OFL')
        value = int(value)
        if not (0 <= value < 10**self._ofl_digits):
            raise ValueError('OFL must be in the range 0-999, got {}'.format(value))
        self._ofl = value

    def get_bytes_length(self):
        if self._data is None:
            return self._length_digits
        return self._length_digits + self._ofl_digits + len(self._data)

    def to_bytes(self):
        if self._data is None:
            return _format_int(0, self._length_digits)
        return _format_int(self._ofl_digits + len(self._data), self._length_digits) + \
            _format_int(self._ofl, self._ofl_digits) + self._data

    @classmethod
    def from_bytes(cls, value, start):
        length = cls._read_length(value, start)
        if length == 0:
            return cls()
        loc = start + cls._length_digits
        if length < cls._ofl_digits:
            raise MalformedHeader(
                'Header length {} is too short to hold the overflow field'.format(length),
                field='{} length'.format(cls.__name__), offset=start)
        ofl = parse_ascii_int(value[loc:loc+cls._ofl_digits], name='OFL', offset=loc)
        return cls(OFL=ofl, data=value[loc+cls._ofl_digits:loc+length])

    def to_json(self):
        return OrderedDict([('OFL', self._ofl), ('data', b'' if self._data is None else self._data)])


class _LengthTable(BaseNITFElement):
    """
    A segment length table of the file header: a three digit count, followed by
    a (subheader length, data length) pair per segment. Subclasses fix the
    digit widths.
    """

    __slots__ = ('subhead_sizes', 'item_sizes')
    _count_digits = 3
    _subheader_digits = 0
    _item_digits = 0

    def __init__(self, subhead_sizes=None, item_sizes=None):
        """

        Parameters
        ----------
        subhead_sizes : None|numpy.ndarray|Sequence[int]
        item_sizes : None|numpy.ndarray|Sequence[int]
        """

        subhead_sizes = numpy.array([] if subhead_sizes is None else subhead_sizes, dtype=numpy.int64)
        item_sizes = numpy.array([] if item_sizes is None else item_sizes, dtype=numpy.int64)
        if subhead_sizes.ndim != 1 or subhead_sizes.shape != item_sizes.shape:
            raise ValueError(
                'subhead_sizes and item_sizes must be one-dimensional of the same length, '
                'got shapes {} and {}'.format(subhead_sizes.shape, item_sizes.shape))
        self.subhead_sizes = subhead_sizes
        self.item_sizes = item_sizes

    @property
    def count(self) -> int:
        """
        int: The number of segments.
        """

        return int(self.subhead_sizes.size)

    @classmethod
    def max_count(cls) -> int:
        return 10**cls._count_digits - 1

    @classmethod
    def max_subheader_size(cls) -> int:
        return 10**cls._subheader_digits - 1

    @classmethod
    def max_item_size(cls) -> int:
        return 10**cls._item_digits - 1

    def check_sizes(self) -> None:
        """
        Verify that the count and every length fit their fixed width fields.

        Raises
        ------
        ValueError
        """

        if self.count > self.max_count():
            raise ValueError(
                '{} segments exceeds the maximum count {}'.format(self.count, self.max_count()))
        for name, sizes, limit in [
                ('subheader', self.subhead_sizes, self.max_subheader_size()),
                ('data', self.item_sizes, self.max_item_size())]:
            if numpy.any((sizes < 0) | (sizes > limit)):
                raise ValueError(
                    'A {} length in {} lies outside of the representable range 0-{}'.format(
                        name, sizes.tolist(), limit))

    def get_bytes_length(self):
        return self._count_digits + self.count*(self._subheader_digits + self._item_digits)

    def to_bytes(self):
        self.check_sizes()
        parts = [_format_int(self.count, self._count_digits), ]
        for subhead_size, item_size in zip(self.subhead_sizes.tolist(), self.item_sizes.tolist()):
            parts.append(_format_int(subhead_size, self._subheader_digits))
            parts.append(_format_int(item_size, self._item_digits))
        return b''.join(parts)

    @classmethod
    def from_bytes(cls, value, start):
        _require(value, start, cls._count_digits, 'count', cls)
        count = parse_ascii_int(
            value[start:start+cls._count_digits], name='{} count'.format(cls.__name__), offset=start)
        if count == 0:
            return cls()
        loc = start + cls._count_digits
        entry_length = cls._subheader_digits + cls._item_digits
        _require(value, loc, count*entry_length, 'length table', cls)

        # one row per segment, split at the subheader length width
        rows = numpy.frombuffer(value, dtype=numpy.uint8, count=count*entry_length, offset=loc)
        rows = rows.reshape((count, entry_length))
        subhead_sizes = numpy.zeros((count, ), dtype=numpy.int64)
        item_sizes = numpy.zeros((count, ), dtype=numpy.int64)
        for i, row in enumerate(rows):
            row_offset = loc + i*entry_length
            subhead_sizes[i] = parse_ascii_int(
                row[:cls._subheader_digits].tobytes(),
                name='{} subheader length {}'.format(cls.__name__, i), offset=row_offset)
            item_sizes[i] = parse_ascii_int(
                row[cls._subheader_digits:].tobytes(),
                name='{} data length {}'.format(cls.__name__, i), offset=row_offset + cls._subheader_digits)
        return cls(subhead_sizes, item_sizes)

    def to_json(self):
        return OrderedDict([
            ('subheader_sizes', self.subhead_sizes.tolist()),
            ('item_sizes', self.item_sizes.tolist())])
