'''fit_stream_sdk: Streaming decoder for FIT activity files.'''

import logging

from . import fit
from .checksum import compute_crc
from .data_message import DataMessage, DecodedField, decode_data_message, decode_field_value
from .decoder import DecodeMode, DecodeResult, DecodeSession, Decoder
from .definition import DefinitionLayout, DeveloperFieldDefinition, FieldDefinition, decode_definition
from .developer import DeveloperFieldDescription, DeveloperFieldRegistry
from .errors import (BadMagicError, ChecksumMismatchError, FitIOError, FitRuntimeError,
                     HeaderChecksumMismatch, InvalidArchitectureError, InvalidBaseTypeError,
                     InvalidHeaderSizeError, MissingDefinitionError, NoTimestampReferenceError,
                     OverrunFileError, ReservedBitSetError, TruncatedFileError)
from .file_header import FileHeader, decode_file_header
from .fit import BASE_TYPE, BASE_TYPE_DEFINITIONS
from .local_types import LocalTypeTable
from .record_header import (CompressedTimestampHeader, NormalHeader, RecordHeader,
                            encode_record_header, parse_record_header)
from .stream import Endianness, Stream
from .timestamp import TimestampTracker

logging.getLogger(__name__).addHandler(logging.NullHandler())
