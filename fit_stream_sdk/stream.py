'''stream.py: Contains the Stream class, a sequential byte source with position tracking.'''

import io
import struct

from garmin_fit_sdk.stream import Endianness

from .errors import FitIOError, TruncatedFileError

STRUCT_PREFIX = {
    Endianness.LITTLE: '<',
    Endianness.BIG: '>',
}


class Stream:
    '''
    A class that represents the bytes of a FIT file and the read position within them.

    Attributes:
        _buffer: The bytes of the file.
        _position: Offset of the next byte to read.
    '''

    def __init__(self, buffer):
        if buffer is None:
            raise RuntimeError("FIT Runtime Error stream buffer is None.")

        self._buffer = bytes(buffer)
        self._position = 0

    @classmethod
    def from_file(cls, filename):
        '''Creates a stream from the contents of a file.'''
        try:
            with open(filename, 'rb') as file:
                return cls(file.read())
        except OSError as error:
            raise FitIOError(f"could not read {filename}: {error}") from error

    @classmethod
    def from_byte_array(cls, byte_array):
        return cls(byte_array)

    @classmethod
    def from_bytes_io(cls, bytes_io: io.BytesIO):
        return cls(bytes_io.getvalue())

    @classmethod
    def from_buffered_reader(cls, buffered_reader: io.BufferedReader):
        try:
            return cls(buffered_reader.read())
        except OSError as error:
            raise FitIOError(f"could not read stream: {error}") from error

    @property
    def position(self):
        return self._position

    @property
    def length(self):
        return len(self._buffer)

    def remaining(self) -> int:
        return len(self._buffer) - self._position

    def reset(self):
        self.seek(0)

    def seek(self, position: int):
        if position < 0 or position > len(self._buffer):
            raise TruncatedFileError(f"cannot seek to {position}", position)

        self._position = position

    def slice(self, start: int, end: int) -> bytes:
        '''Returns buffer[start:end] without moving the read position.'''
        return self._buffer[start:end]

    def peek_byte(self) -> int:
        if self._position >= len(self._buffer):
            raise TruncatedFileError("unexpected end of data", self._position)

        return self._buffer[self._position]

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_bytes(self, size: int) -> bytes:
        '''Reads size bytes or raises TruncatedFileError if fewer remain.'''
        if self._position + size > len(self._buffer):
            raise TruncatedFileError(
                f"needed {size} bytes but only {self.remaining()} remain", self._position)

        data = self._buffer[self._position:self._position + size]
        self._position += size

        return data

    def read_uint16(self, endianness: Endianness = Endianness.LITTLE) -> int:
        return struct.unpack(STRUCT_PREFIX[endianness] + 'H', self.read_bytes(2))[0]
