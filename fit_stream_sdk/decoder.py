'''decoder.py: Contains the decoder class which is used to decode fit files.'''

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from . import fit as FIT
from .checksum import expected_file_crc, read_stored_crc
from .data_message import DataMessage, decode_data_message
from .definition import decode_definition
from .developer import DeveloperFieldRegistry
from .errors import ChecksumMismatchError, FitRuntimeError, ReservedBitSetError
from .file_header import FileHeader, decode_file_header
from .local_types import LocalTypeTable
from .record_header import NormalHeader, parse_record_header
from .stream import Stream
from .timestamp import TimestampTracker

logger = logging.getLogger(__name__)


class DecodeMode(str, Enum):
    '''How read() reports the error that ends decoding.'''
    FAIL_FAST = "fail_fast"
    BEST_EFFORT = "best_effort"


@dataclass
class DecodeSession:
    '''The mutable state of one read() call. Never shared between calls.'''
    local_types: LocalTypeTable = field(default_factory=LocalTypeTable)
    timestamp_tracker: TimestampTracker = field(default_factory=TimestampTracker)
    developer_registry: DeveloperFieldRegistry = field(default_factory=DeveloperFieldRegistry)


@dataclass
class DecodeResult:
    '''
    The outcome of a read() call.

    Attributes:
        header: The file header, None if it could not be decoded.
        messages: Data messages in file order, possibly partial.
        errors: The error that ended decoding early, if any (best effort mode).
        warnings: Problems that did not stop decoding.
        bytes_consumed: Record bytes read after the header.
        cancelled: True if stop() ended decoding between records.
    '''
    header: Optional[FileHeader] = None
    messages: List[DataMessage] = field(default_factory=list)
    errors: List[FitRuntimeError] = field(default_factory=list)
    warnings: List[FitRuntimeError] = field(default_factory=list)
    bytes_consumed: int = 0
    cancelled: bool = False

    @property
    def ok(self):
        return not self.errors


class Decoder:
    '''
    A class for decoding a FIT file into data messages.

    Attributes:
        _stream: The stream of bytes to decode.
        _stop_requested: Set by stop() to end the current read() between records.
    '''

    def __init__(self, stream: Stream):
        if stream is None:
            raise RuntimeError("FIT Runtime Error stream parameter is None.")

        self._stream = stream
        self._stop_requested = False

    def is_fit(self) -> bool:
        '''Returns True if the stream starts with a well formed FIT file header.'''
        position = self._stream.position
        try:
            self._stream.reset()
            header = decode_file_header(self._stream)
            return self._stream.length >= header.header_size
        except FitRuntimeError:
            return False
        finally:
            self._stream.seek(position)

    def check_integrity(self) -> bool:
        '''Returns True if the file is complete and its trailing checksum matches.'''
        position = self._stream.position
        try:
            if not self.is_fit():
                return False

            self._stream.reset()
            header = decode_file_header(self._stream)
            if self._stream.length < header.payload_end + FIT.CRC_SIZE:
                return False

            self._stream.seek(header.payload_end)
            return read_stored_crc(self._stream) == expected_file_crc(self._stream, header.payload_end)
        except FitRuntimeError:
            return False
        finally:
            self._stream.seek(position)

    def stop(self):
        '''Asks the running read() to stop before the next record.'''
        self._stop_requested = True

    def read(self, mode: DecodeMode = DecodeMode.BEST_EFFORT, strict: bool = False,
             mesg_listener=None, developer_registry: DeveloperFieldRegistry = None,
             register_developer_fields: bool = True) -> DecodeResult:
        '''
        Decodes the whole file.

        Args:
            mode: FAIL_FAST raises the first error; BEST_EFFORT returns it in
                DecodeResult.errors along with the messages decoded before it.
            strict: Treat a set reserved bit or a file checksum mismatch as errors.
            mesg_listener: Called with each DataMessage as it is decoded.
            developer_registry: Developer field descriptions to start from. It is
                copied, so descriptions found in this file are not added to it.
            register_developer_fields: Register the field_description messages
                found in the file so later developer fields are typed.

        Returns:
            DecodeResult
        '''
        self._stop_requested = False

        session = DecodeSession()
        if developer_registry is not None:
            session.developer_registry = developer_registry.copy()

        result = DecodeResult()

        try:
            self._stream.reset()
            result.header = decode_file_header(self._stream, result.warnings)

            result.cancelled = self._read_records(
                session, result, strict, mesg_listener, register_developer_fields)

            if not result.cancelled:
                self._check_file_crc(result, strict)
        except FitRuntimeError as error:
            if mode == DecodeMode.FAIL_FAST:
                raise

            logger.error("decoding stopped: %s", error)
            result.errors.append(error)
        finally:
            if result.header is not None:
                result.bytes_consumed = min(
                    max(self._stream.position - result.header.header_size, 0), result.header.data_size)

        return result

    def _read_records(self, session: DecodeSession, result: DecodeResult, strict: bool,
                      mesg_listener, register_developer_fields: bool) -> bool:
        payload_end = result.header.payload_end

        while self._stream.position < payload_end:
            if self._stop_requested:
                logger.info("decoding stopped at byte %d", self._stream.position)
                return True

            record_offset = self._stream.position
            header_byte = self._stream.read_byte()
            record_header = parse_record_header(header_byte)

            if isinstance(record_header, NormalHeader) and record_header.reserved:
                self._report(ReservedBitSetError(
                    f"reserved bit set in record header 0x{header_byte:02X}", record_offset), result, strict)

            if record_header.is_definition:
                layout = decode_definition(self._stream, record_header, payload_end)
                session.local_types.bind(record_header.local_mesg_num, layout)
                continue

            layout = session.local_types.resolve(record_header.local_mesg_num, record_offset)
            message = decode_data_message(
                self._stream, record_header, layout, session.timestamp_tracker, payload_end,
                developer_registry=session.developer_registry, record_offset=record_offset)

            if register_developer_fields and message.global_mesg_num == FIT.FIELD_DESCRIPTION_MESG_NUM:
                session.developer_registry.register_from_message(message)

            result.messages.append(message)
            if mesg_listener is not None:
                mesg_listener(message)

        return False

    def _check_file_crc(self, result: DecodeResult, strict: bool):
        crc_offset = result.header.payload_end
        expected = expected_file_crc(self._stream, crc_offset)
        stored = read_stored_crc(self._stream)

        if stored != expected:
            self._report(ChecksumMismatchError(
                f"file checksum 0x{stored:04X} does not match 0x{expected:04X}", crc_offset), result, strict)

    @staticmethod
    def _report(warning: FitRuntimeError, result: DecodeResult, strict: bool):
        if strict:
            raise warning

        logger.warning(str(warning))
        result.warnings.append(warning)
