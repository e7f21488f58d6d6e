'''data_message.py: Contains the decoded message types and the data record decoder.'''

import logging
import struct
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from garmin_fit_sdk.util import convert_timestamp_to_datetime

from . import fit as FIT
from .definition import DefinitionLayout
from .developer import DeveloperFieldRegistry
from .errors import OverrunFileError
from .record_header import CompressedTimestampHeader, RecordHeader
from .stream import STRUCT_PREFIX, Endianness, Stream
from .timestamp import TimestampTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedField:
    '''
    A field value exactly as it was stored.

    Attributes:
        field_num: Field number within the global message (or developer field number).
        base_type: Base type used to decode the value, None for opaque developer bytes.
        value: A scalar, a list for array fields, a str (or list of str) for strings,
            or bytes for developer fields of unknown type. Invalid values are kept.
        is_invalid: True when the value (every element, for arrays) equals the
            base type's invalid sentinel.
        invalid_elements: Per-element invalid flags.
        developer_data_index: Set for developer fields only.
    '''
    field_num: int
    base_type: Optional[int]
    value: Any
    is_invalid: bool
    invalid_elements: Tuple[bool, ...] = field(default_factory=tuple)
    developer_data_index: Optional[int] = None

    @property
    def is_array(self):
        return isinstance(self.value, list)


@dataclass(frozen=True)
class DataMessage:
    '''
    One decoded data record.

    Attributes:
        local_mesg_num: Local message type of the record.
        global_mesg_num: Global message number of the layout it was decoded with.
        timestamp: Seconds since the FIT epoch, or None if neither a timestamp
            field nor a compressed header supplied one.
        fields: Decoded fields in definition order.
        developer_fields: Decoded developer fields in definition order.
        offset: Byte offset of the record header in the file.
    '''
    local_mesg_num: int
    global_mesg_num: int
    timestamp: Optional[int] = None
    fields: Tuple[DecodedField, ...] = field(default_factory=tuple)
    developer_fields: Tuple[DecodedField, ...] = field(default_factory=tuple)
    offset: Optional[int] = None

    def get_field(self, field_num: int) -> Optional[DecodedField]:
        for decoded in self.fields:
            if decoded.field_num == field_num:
                return decoded
        return None

    def get_value(self, field_num: int, default=None):
        decoded = self.get_field(field_num)
        return decoded.value if decoded is not None else default

    @property
    def datetime(self):
        if self.timestamp is None:
            return None
        return convert_timestamp_to_datetime(self.timestamp)


def _decode_string(data: bytes):
    strings = [chunk.decode('utf-8', errors='replace') for chunk in data.split(b'\x00') if chunk]

    if not strings:
        return '', True, (True,)
    if len(strings) == 1:
        return strings[0], False, (False,)
    return strings, False, tuple(False for _ in strings)


def decode_field_value(data: bytes, base_type: int, endianness: Endianness = Endianness.LITTLE):
    '''
    Decodes the bytes of one field.

    A field whose size is a multiple of its base type's width decodes as a list
    of that many values when the multiple is greater than one. A size that is
    not a whole multiple falls back to a byte array.

    Returns:
        tuple: (value, is_invalid, invalid_elements)
    '''
    if base_type == FIT.BASE_TYPE['STRING']:
        return _decode_string(data)

    base_type_def = FIT.BASE_TYPE_DEFINITIONS[base_type]
    width = base_type_def['size']

    if len(data) == 0 or len(data) % width != 0:
        logger.debug("%d bytes do not fit base type %s, decoding as bytes",
                     len(data), FIT.base_type_name(base_type))
        base_type_def = FIT.BASE_TYPE_DEFINITIONS[FIT.BASE_TYPE['BYTE']]
        width = 1

    count = len(data) // width
    prefix = STRUCT_PREFIX[endianness]
    raw_type_code = FIT.RAW_TYPE_CODE[width]
    values = list(struct.unpack(f"{prefix}{count}{base_type_def['type_code']}", data))
    raw_values = struct.unpack(f"{prefix}{count}{raw_type_code}", data)

    invalid_elements = tuple(raw == base_type_def['invalid'] for raw in raw_values)
    is_invalid = all(invalid_elements)

    if count == 1:
        return values[0], is_invalid, invalid_elements
    return values, is_invalid, invalid_elements


def decode_data_message(stream: Stream, header: RecordHeader, layout: DefinitionLayout,
                        timestamp_tracker: TimestampTracker, payload_end: int,
                        developer_registry: DeveloperFieldRegistry = None,
                        record_offset: int = None) -> DataMessage:
    '''
    Reads the body of a data record using the layout bound to its local message type.

    Args:
        stream: Positioned on the first byte after the record header.
        header: The parsed record header, normal or compressed timestamp.
        layout: The definition currently bound to the header's local message type.
        timestamp_tracker: The session's timestamp reference, updated in place.
        payload_end: Offset of the end of the declared record data.
        developer_registry: Descriptions used to type developer fields.
        record_offset: Offset of the record header, used for error reporting.
    '''
    if stream.position + layout.data_size > payload_end:
        raise OverrunFileError(
            f"data record of {layout.data_size} bytes for global message {layout.global_mesg_num} "
            "would read past the declared data size", stream.position)

    timestamp = None
    if isinstance(header, CompressedTimestampHeader):
        timestamp = timestamp_tracker.apply_offset(header.time_offset, record_offset)

    fields = []
    for field_def in layout.field_definitions:
        data = stream.read_bytes(field_def.size)
        value, is_invalid, invalid_elements = decode_field_value(
            data, field_def.base_type, layout.architecture)

        fields.append(DecodedField(
            field_num=field_def.field_num,
            base_type=field_def.base_type,
            value=value,
            is_invalid=is_invalid,
            invalid_elements=invalid_elements,
        ))

        if field_def.field_num == FIT.TIMESTAMP_FIELD_NUM and isinstance(value, int):
            timestamp_tracker.set_absolute(value)
            timestamp = timestamp_tracker.last_timestamp

    developer_fields = []
    for dev_def in layout.developer_field_definitions:
        data = stream.read_bytes(dev_def.size)

        description = None
        if developer_registry is not None:
            description = developer_registry.lookup(dev_def.developer_data_index, dev_def.field_num)

        if description is None:
            developer_fields.append(DecodedField(
                field_num=dev_def.field_num,
                base_type=None,
                value=data,
                is_invalid=False,
                developer_data_index=dev_def.developer_data_index,
            ))
            continue

        value, is_invalid, invalid_elements = decode_field_value(
            data, description.base_type, layout.architecture)
        developer_fields.append(DecodedField(
            field_num=dev_def.field_num,
            base_type=description.base_type,
            value=value,
            is_invalid=is_invalid,
            invalid_elements=invalid_elements,
            developer_data_index=dev_def.developer_data_index,
        ))

    return DataMessage(
        local_mesg_num=header.local_mesg_num,
        global_mesg_num=layout.global_mesg_num,
        timestamp=timestamp,
        fields=tuple(fields),
        developer_fields=tuple(developer_fields),
        offset=record_offset,
    )
