'''definition.py: Contains the message definition types and the definition record decoder.'''

import logging
from dataclasses import dataclass, field
from typing import Tuple

from . import fit as FIT
from .errors import InvalidArchitectureError, InvalidBaseTypeError, OverrunFileError
from .record_header import NormalHeader
from .stream import Endianness, Stream

logger = logging.getLogger(__name__)

FIXED_CONTENT_SIZE = 5
FIELD_DEFINITION_SIZE = 3


@dataclass(frozen=True)
class FieldDefinition:
    '''
    One field of a definition record.

    Attributes:
        field_num: Field number within the global message.
        size: Size of the field in bytes.
        base_type: The base type number (a key of BASE_TYPE_DEFINITIONS).
        endian_ability: The endian flag (bit 7) of the base type byte as written.
    '''
    field_num: int
    size: int
    base_type: int
    endian_ability: bool = False

    @property
    def base_type_name(self):
        return FIT.base_type_name(self.base_type)


@dataclass(frozen=True)
class DeveloperFieldDefinition:
    '''
    One developer field of a definition record. The base type lives in the
    matching field_description message, not in the definition itself.
    '''
    field_num: int
    size: int
    developer_data_index: int


@dataclass(frozen=True)
class DefinitionLayout:
    '''
    The decoded content of a definition record.

    Attributes:
        architecture: Byte order of the data records bound to this layout.
        global_mesg_num: Global message number.
        field_definitions: Field definitions in record order.
        developer_field_definitions: Developer field definitions in record order.
    '''
    architecture: Endianness
    global_mesg_num: int
    field_definitions: Tuple[FieldDefinition, ...] = field(default_factory=tuple)
    developer_field_definitions: Tuple[DeveloperFieldDefinition, ...] = field(default_factory=tuple)

    @property
    def data_size(self) -> int:
        '''Bytes in every data record bound to this layout, excluding the header byte.'''
        return (sum(field_def.size for field_def in self.field_definitions)
                + sum(dev_def.size for dev_def in self.developer_field_definitions))


def _ensure_within_payload(stream: Stream, size: int, payload_end: int, what: str):
    if stream.position + size > payload_end:
        raise OverrunFileError(
            f"{what} of {size} bytes would read past the declared data size", stream.position)


def decode_definition(stream: Stream, header: NormalHeader, payload_end: int) -> DefinitionLayout:
    '''
    Reads the body of a definition record; the header byte has already been consumed.

    Args:
        stream: Positioned on the reserved byte after the record header.
        header: The parsed record header, known to be a definition.
        payload_end: Offset of the end of the declared record data.
    '''
    _ensure_within_payload(stream, FIXED_CONTENT_SIZE, payload_end, "definition record")

    stream.read_byte()  # reserved

    architecture_offset = stream.position
    architecture_byte = stream.read_byte()
    if architecture_byte == FIT.ARCHITECTURE_LITTLE_ENDIAN:
        architecture = Endianness.LITTLE
    elif architecture_byte == FIT.ARCHITECTURE_BIG_ENDIAN:
        architecture = Endianness.BIG
    else:
        raise InvalidArchitectureError(f"invalid architecture {architecture_byte}", architecture_offset)

    global_mesg_num = stream.read_uint16(architecture)
    num_fields = stream.read_byte()

    _ensure_within_payload(stream, num_fields * FIELD_DEFINITION_SIZE, payload_end, "field definitions")

    field_definitions = []
    for _ in range(num_fields):
        field_num = stream.read_byte()
        size = stream.read_byte()

        base_type_offset = stream.position
        base_type_byte = stream.read_byte()
        base_type = FIT.base_type_from_byte(base_type_byte)
        if base_type is None:
            raise InvalidBaseTypeError(
                f"invalid base type 0x{base_type_byte:02X} for field {field_num}", base_type_offset)

        field_definitions.append(FieldDefinition(
            field_num=field_num,
            size=size,
            base_type=base_type,
            endian_ability=bool(base_type_byte & FIT.BASE_TYPE_ENDIAN_FLAG),
        ))

    developer_field_definitions = []
    if header.has_developer_data:
        _ensure_within_payload(stream, 1, payload_end, "developer field count")
        num_dev_fields = stream.read_byte()

        _ensure_within_payload(
            stream, num_dev_fields * FIELD_DEFINITION_SIZE, payload_end, "developer field definitions")
        for _ in range(num_dev_fields):
            field_num, size, developer_data_index = stream.read_bytes(FIELD_DEFINITION_SIZE)
            developer_field_definitions.append(DeveloperFieldDefinition(
                field_num=field_num,
                size=size,
                developer_data_index=developer_data_index,
            ))

    layout = DefinitionLayout(
        architecture=architecture,
        global_mesg_num=global_mesg_num,
        field_definitions=tuple(field_definitions),
        developer_field_definitions=tuple(developer_field_definitions),
    )

    logger.debug("definition: local %d -> global %d, %d fields, %d developer fields",
                 header.local_mesg_num, global_mesg_num,
                 len(field_definitions), len(developer_field_definitions))

    return layout
