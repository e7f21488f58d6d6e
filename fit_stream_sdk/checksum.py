'''checksum.py: Contains the CRC-16 helpers used to validate FIT headers and files.'''

import struct

from garmin_fit_sdk import CrcCalculator

from . import fit as FIT
from .stream import Stream


def compute_crc(data: bytes) -> int:
    '''Returns the FIT CRC-16 of data.'''
    return CrcCalculator.calculate_crc(data, 0, len(data))


def expected_file_crc(stream: Stream, payload_end: int) -> int:
    '''Returns the CRC of the header and record bytes, taken from the buffer rather than the read position.'''
    return compute_crc(stream.slice(0, payload_end))


def read_stored_crc(stream: Stream) -> int:
    '''Reads the little endian checksum at the stream position.'''
    return struct.unpack('<H', stream.read_bytes(FIT.CRC_SIZE))[0]
