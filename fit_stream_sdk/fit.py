'''fit.py: Contains the FIT file format constants and base type helpers used by the decoder.'''

from garmin_fit_sdk.fit import (BASE_TYPE, BASE_TYPE_DEFINITIONS, BASE_TYPE_MASK,
                                BASE_TYPE_TO_FIELD_TYPE, DEV_DATA_MASK, LOCAL_MESG_NUM_MASK,
                                MESG_DEFINITION_MASK)

HEADER_WITH_CRC_SIZE = 14
HEADER_WITHOUT_CRC_SIZE = 12
CRC_SIZE = 2
DATA_TYPE = b'.FIT'

COMPRESSED_HEADER_MASK = 0x80
RESERVED_BIT_MASK = 0x10
COMPRESSED_LOCAL_MESG_NUM_MASK = 0x60
COMPRESSED_TIME_MASK = 0x1F

BASE_TYPE_ENDIAN_FLAG = 0x80

ARCHITECTURE_LITTLE_ENDIAN = 0
ARCHITECTURE_BIG_ENDIAN = 1

TIMESTAMP_FIELD_NUM = 253
FIELD_DESCRIPTION_MESG_NUM = 206

# Unsigned struct code per base type width. BASE_TYPE_DEFINITIONS[...]['invalid']
# is a bit pattern, so float sentinels are matched on these raw values.
RAW_TYPE_CODE = {1: 'B', 2: 'H', 4: 'I', 8: 'Q'}


def base_type_from_byte(base_type_byte: int):
    '''Returns the base type for a definition's base type byte, or None if the number is unknown.'''
    base_type = base_type_byte & BASE_TYPE_MASK
    return base_type if base_type in BASE_TYPE_DEFINITIONS else None


def base_type_name(base_type: int) -> str:
    return BASE_TYPE_TO_FIELD_TYPE[base_type]
