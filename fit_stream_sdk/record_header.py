'''record_header.py: Contains the record header variants and the parser for the header byte.'''

from dataclasses import dataclass
from typing import Union

from . import fit as FIT


@dataclass(frozen=True)
class NormalHeader:
    '''
    Header of a definition or data record.

    Attributes:
        local_mesg_num: Local message type, 0-15.
        is_definition: True for definition records.
        has_developer_data: Developer data flag. Only meaningful on definitions,
            but kept for data headers too so the byte can be reproduced.
        reserved: The reserved bit. Must be clear in a valid file.
    '''
    local_mesg_num: int
    is_definition: bool
    has_developer_data: bool = False
    reserved: bool = False


@dataclass(frozen=True)
class CompressedTimestampHeader:
    '''
    Header of a data record that packs a 5 bit time offset into the header byte.

    Attributes:
        local_mesg_num: Local message type, 0-3.
        time_offset: Seconds past the last timestamp, modulo 32.
    '''
    local_mesg_num: int
    time_offset: int

    @property
    def is_definition(self):
        return False


RecordHeader = Union[NormalHeader, CompressedTimestampHeader]


def parse_record_header(header_byte: int) -> RecordHeader:
    '''Classifies a record header byte.'''
    if header_byte & FIT.COMPRESSED_HEADER_MASK:
        return CompressedTimestampHeader(
            local_mesg_num=(header_byte & FIT.COMPRESSED_LOCAL_MESG_NUM_MASK) >> 5,
            time_offset=header_byte & FIT.COMPRESSED_TIME_MASK,
        )

    return NormalHeader(
        local_mesg_num=header_byte & FIT.LOCAL_MESG_NUM_MASK,
        is_definition=bool(header_byte & FIT.MESG_DEFINITION_MASK),
        has_developer_data=bool(header_byte & FIT.DEV_DATA_MASK),
        reserved=bool(header_byte & FIT.RESERVED_BIT_MASK),
    )


def encode_record_header(header: RecordHeader) -> int:
    '''Returns the header byte for a record header, the inverse of parse_record_header.'''
    if isinstance(header, CompressedTimestampHeader):
        if not 0 <= header.local_mesg_num <= 3:
            raise ValueError(f"compressed local message type {header.local_mesg_num} out of range")
        if not 0 <= header.time_offset <= FIT.COMPRESSED_TIME_MASK:
            raise ValueError(f"time offset {header.time_offset} out of range")

        return FIT.COMPRESSED_HEADER_MASK | (header.local_mesg_num << 5) | header.time_offset

    if isinstance(header, NormalHeader):
        if not 0 <= header.local_mesg_num <= FIT.LOCAL_MESG_NUM_MASK:
            raise ValueError(f"local message type {header.local_mesg_num} out of range")

        header_byte = header.local_mesg_num
        if header.is_definition:
            header_byte |= FIT.MESG_DEFINITION_MASK
        if header.has_developer_data:
            header_byte |= FIT.DEV_DATA_MASK
        if header.reserved:
            header_byte |= FIT.RESERVED_BIT_MASK
        return header_byte

    raise TypeError(f"unknown record header {header!r}")
