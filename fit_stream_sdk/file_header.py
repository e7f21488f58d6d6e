'''file_header.py: Contains the FIT file header and its decoder.'''

import logging
import struct
from dataclasses import dataclass
from typing import Optional

from . import fit as FIT
from .checksum import compute_crc
from .errors import BadMagicError, HeaderChecksumMismatch, InvalidHeaderSizeError
from .stream import Stream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileHeader:
    '''
    The fixed header at the start of a FIT file.

    Attributes:
        header_size: 12 or 14.
        protocol_version: Protocol version byte.
        profile_version: Profile version, e.g. 21173 for 21.173.
        data_size: Number of record bytes that follow the header.
        data_type: The ".FIT" marker.
        header_crc: Checksum of the first 12 bytes, None for 12 byte headers.
    '''
    header_size: int
    protocol_version: int
    profile_version: int
    data_size: int
    data_type: bytes
    header_crc: Optional[int] = None

    @property
    def payload_end(self) -> int:
        '''Offset of the first byte after the records, measured from the start of the file.'''
        return self.header_size + self.data_size


def decode_file_header(stream: Stream, warnings: list = None) -> FileHeader:
    '''
    Reads the file header at the stream's current position.

    A header checksum mismatch is appended to warnings (and logged) rather than
    raised, since the whole-file checksum covers the header anyway.
    '''
    start = stream.position
    header_size = stream.read_byte()

    if header_size not in (FIT.HEADER_WITHOUT_CRC_SIZE, FIT.HEADER_WITH_CRC_SIZE):
        raise InvalidHeaderSizeError(f"invalid header size {header_size}", start)

    protocol_version = stream.read_byte()
    profile_version, data_size = struct.unpack('<HI', stream.read_bytes(6))

    data_type = stream.read_bytes(4)
    if data_type != FIT.DATA_TYPE:
        raise BadMagicError(f"invalid data type {data_type!r}", start + 8)

    header_crc = None
    if header_size == FIT.HEADER_WITH_CRC_SIZE:
        header_crc = struct.unpack('<H', stream.read_bytes(2))[0]

        # A zero header CRC means the writer did not compute one
        if header_crc != 0:
            expected = compute_crc(stream.slice(start, start + 12))
            if header_crc != expected:
                warning = HeaderChecksumMismatch(
                    f"header checksum 0x{header_crc:04X} does not match 0x{expected:04X}", start + 12)
                logger.warning(str(warning))
                if warnings is not None:
                    warnings.append(warning)

    return FileHeader(
        header_size=header_size,
        protocol_version=protocol_version,
        profile_version=profile_version,
        data_size=data_size,
        data_type=data_type,
        header_crc=header_crc,
    )
