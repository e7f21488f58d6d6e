'''test_decoder.py: Contains the set of tests for the Decoder class.'''

import struct
from io import BytesIO

import pytest
from fit_stream_sdk import (BadMagicError, ChecksumMismatchError, DecodeMode, Decoder,
                            DeveloperFieldDescription, DeveloperFieldRegistry, FitIOError,
                            InvalidBaseTypeError, MissingDefinitionError, NoTimestampReferenceError,
                            OverrunFileError, ReservedBitSetError, Stream, TruncatedFileError)
from fit_stream_sdk import fit as FIT

from fit_builder import FitBuilder, record_definition, record_payload


def _activity() -> FitBuilder:
    '''A file_id message followed by three record messages, the last with a compressed timestamp.'''
    builder = FitBuilder()
    builder.definition(0, 0, [(0, 1, 0x00), (1, 2, 0x84), (4, 4, 0x86)])
    builder.data(0, struct.pack('<BHI', 4, 1, 1000000000))
    record_definition(builder, local_mesg_num=1)
    builder.data(1, record_payload(1000000000, 120))
    builder.data(1, record_payload(1000000001, 121))
    builder.definition(2, 20, [(3, 1, 0x02)])
    builder.compressed(2, 5, struct.pack('<B', 122))
    return builder


def _decoder(data) -> Decoder:
    return Decoder(Stream.from_byte_array(data))


class TestDecoder:
    '''Set of tests that verify the decoder over whole files.'''

    def test_constructor_with_none_stream(self):
        with pytest.raises(RuntimeError, match="FIT Runtime Error stream parameter is None"):
            Decoder(None)

    def test_read_activity(self):
        '''Tests that every data record becomes a message in file order'''
        builder = _activity()

        result = _decoder(builder.build()).read()

        assert result.ok
        assert result.warnings == []
        assert result.cancelled is False
        assert result.bytes_consumed == builder.data_size
        assert [message.global_mesg_num for message in result.messages] == [0, 20, 20, 20]

        file_id = result.messages[0]
        assert file_id.get_value(0) == 4
        assert file_id.get_value(1) == 1
        assert file_id.timestamp is None

        assert [message.timestamp for message in result.messages[1:]] == \
            [1000000000, 1000000001, 1000000005]
        assert [message.get_value(3) for message in result.messages[1:]] == [120, 121, 122]

    def test_message_offsets(self):
        builder = FitBuilder()
        record_definition(builder)
        builder.data(0, record_payload(5, 60))

        result = _decoder(builder.build()).read()

        # 14 byte header + 1 + 5 + 2 * 3 definition bytes
        assert result.messages[0].offset == 26

    def test_twelve_byte_header_file(self):
        result = _decoder(_activity().build(header_size=12)).read()

        assert result.ok
        assert len(result.messages) == 4
        assert result.header.header_crc is None

    def test_empty_data(self):
        result = _decoder(FitBuilder().build()).read()

        assert result.ok
        assert result.messages == []
        assert result.bytes_consumed == 0

    def test_missing_definition(self):
        '''Tests that a data record for an unbound local message type is an error'''
        builder = FitBuilder()
        record_definition(builder, local_mesg_num=0)
        builder.data(0, record_payload(10, 60))
        builder.data(3, record_payload(11, 61))

        result = _decoder(builder.build()).read()

        assert len(result.messages) == 1
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], MissingDefinitionError)
        assert result.errors[0].offset == 14 + 12 + 6

    def test_missing_definition_fail_fast(self):
        builder = FitBuilder().data(5, b'\x00')

        with pytest.raises(MissingDefinitionError):
            _decoder(builder.build()).read(mode=DecodeMode.FAIL_FAST)

    def test_redefinition_replaces_layout(self):
        '''Tests that data records use the most recent definition for their slot'''
        builder = FitBuilder()
        record_definition(builder, local_mesg_num=0)
        builder.data(0, record_payload(10, 60))
        builder.definition(0, 21, [(0, 1, 0x00), (1, 1, 0x00)])
        builder.data(0, struct.pack('<BB', 0, 4))

        result = _decoder(builder.build()).read()

        assert result.ok
        first, second = result.messages
        assert first.global_mesg_num == 20
        assert second.global_mesg_num == 21
        assert [(decoded.field_num, decoded.value) for decoded in second.fields] == [(0, 0), (1, 4)]

    def test_compressed_timestamp_rollover(self):
        builder = FitBuilder()
        record_definition(builder, local_mesg_num=0)
        builder.data(0, record_payload(100, 60))
        builder.definition(1, 20, [(3, 1, 0x02)])
        builder.compressed(1, 2, b'\x3d')
        builder.compressed(1, 10, b'\x3e')

        result = _decoder(builder.build()).read()

        assert [message.timestamp for message in result.messages] == [100, 130, 138]

    def test_compressed_timestamp_without_reference(self):
        builder = FitBuilder()
        builder.definition(0, 20, [(3, 1, 0x02)])
        builder.compressed(0, 2, b'\x3d')

        result = _decoder(builder.build()).read()

        assert result.messages == []
        assert isinstance(result.errors[0], NoTimestampReferenceError)

    def test_truncated_file(self):
        '''Tests that a file one byte short of its declared data size is truncated'''
        builder = _activity()
        data = builder.build()[:14 + builder.data_size - 1]

        result = _decoder(data).read()

        assert len(result.errors) == 1
        assert isinstance(result.errors[0], TruncatedFileError)
        assert len(result.messages) == 3

    def test_truncated_file_fail_fast(self):
        builder = _activity()
        data = builder.build()[:14 + builder.data_size - 1]

        with pytest.raises(TruncatedFileError):
            _decoder(data).read(mode=DecodeMode.FAIL_FAST)

    def test_missing_checksum_is_truncation(self):
        builder = _activity()
        data = builder.build()[:-2]

        result = _decoder(data).read()

        assert isinstance(result.errors[0], TruncatedFileError)
        assert len(result.messages) == 4

    def test_overrun(self):
        '''Tests that a record reaching past the declared data size is an overrun'''
        builder = FitBuilder()
        record_definition(builder)
        builder.data(0, record_payload(10, 60))

        result = _decoder(builder.build(data_size=builder.data_size - 2)).read()

        assert result.messages == []
        assert isinstance(result.errors[0], OverrunFileError)
        assert result.errors[0].offset == 14 + 12 + 1

    def test_checksum_mismatch_best_effort(self):
        '''Tests that a bad file checksum still returns every message'''
        builder = _activity()

        result = _decoder(builder.build(crc=0x1234)).read()

        assert result.ok
        assert len(result.messages) == 4
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], ChecksumMismatchError)
        assert result.warnings[0].offset == 14 + builder.data_size

    def test_checksum_mismatch_strict(self):
        result = _decoder(_activity().build(crc=0x1234)).read(strict=True)

        assert len(result.messages) == 4
        assert isinstance(result.errors[0], ChecksumMismatchError)

    def test_checksum_mismatch_strict_fail_fast(self):
        with pytest.raises(ChecksumMismatchError):
            _decoder(_activity().build(crc=0x1234)).read(mode=DecodeMode.FAIL_FAST, strict=True)

    def test_reserved_bit(self):
        '''Tests that a reserved bit is a warning unless decoding strictly'''
        builder = FitBuilder()
        record_definition(builder)
        builder.data(0, record_payload(10, 60), reserved_bit=True)
        data = builder.build()

        result = _decoder(data).read()
        assert result.ok
        assert len(result.messages) == 1
        assert isinstance(result.warnings[0], ReservedBitSetError)

        with pytest.raises(ReservedBitSetError):
            _decoder(data).read(mode=DecodeMode.FAIL_FAST, strict=True)

    def test_bad_magic(self):
        result = _decoder(_activity().build(data_type=b'.FTT')).read()

        assert result.header is None
        assert isinstance(result.errors[0], BadMagicError)

    def test_invalid_base_type(self):
        builder = FitBuilder().definition(0, 20, [(3, 1, 0x11)])

        result = _decoder(builder.build()).read()

        assert isinstance(result.errors[0], InvalidBaseTypeError)
        assert result.errors[0].offset == 14 + 8

    def test_big_endian_records(self):
        builder = FitBuilder()
        builder.definition(0, 20, [(253, 4, 0x86), (6, 2, 0x84)], architecture=1)
        builder.data(0, struct.pack('>IH', 1000, 5000))

        result = _decoder(builder.build()).read()

        assert result.messages[0].timestamp == 1000
        assert result.messages[0].get_value(6) == 5000

    def test_invalid_value_is_kept(self):
        builder = FitBuilder()
        builder.definition(0, 20, [(5, 4, 0x86)])
        builder.data(0, b'\xff\xff\xff\xff')

        decoded = _decoder(builder.build()).read().messages[0].fields[0]

        assert decoded.value == 0xFFFFFFFF
        assert decoded.is_invalid is True

    def test_developer_fields_registered_from_field_description(self):
        '''Tests that field_description messages type later developer fields'''
        builder = FitBuilder()
        builder.definition(0, 206, [(0, 1, 0x02), (1, 1, 0x02), (2, 1, 0x02), (3, 8, 0x07)])
        builder.data(0, bytes([0, 1, 0x84]) + b'power\x00\x00\x00')
        builder.definition(1, 20, [(3, 1, 0x02)], dev_fields=[(1, 2, 0)])
        builder.data(1, bytes([90]) + struct.pack('<H', 250))

        result = _decoder(builder.build()).read()

        assert result.ok
        record = result.messages[1]
        assert record.developer_fields[0].value == 250
        assert record.developer_fields[0].base_type == FIT.BASE_TYPE['UINT16']

    def test_developer_fields_without_registration(self):
        builder = FitBuilder()
        builder.definition(0, 206, [(0, 1, 0x02), (1, 1, 0x02), (2, 1, 0x02)])
        builder.data(0, bytes([0, 1, 0x84]))
        builder.definition(1, 20, [(3, 1, 0x02)], dev_fields=[(1, 2, 0)])
        builder.data(1, bytes([90]) + struct.pack('<H', 250))

        result = _decoder(builder.build()).read(register_developer_fields=False)

        assert result.messages[1].developer_fields[0].value == struct.pack('<H', 250)

    def test_developer_registry_supplied_by_caller(self):
        registry = DeveloperFieldRegistry()
        registry.register(DeveloperFieldDescription(2, 7, FIT.BASE_TYPE['SINT8']))
        builder = FitBuilder()
        builder.definition(0, 20, [(3, 1, 0x02)], dev_fields=[(7, 1, 2)])
        builder.data(0, bytes([90, 0xFE]))

        result = _decoder(builder.build()).read(developer_registry=registry)

        assert result.messages[0].developer_fields[0].value == -2

    def test_caller_registry_is_not_modified(self):
        '''Tests that descriptions found in one file neither reach the caller's registry nor the next file'''
        registry = DeveloperFieldRegistry()
        registry.register(DeveloperFieldDescription(2, 7, FIT.BASE_TYPE['SINT8']))

        described = FitBuilder()
        described.definition(0, 206, [(0, 1, 0x02), (1, 1, 0x02), (2, 1, 0x02)])
        described.data(0, bytes([0, 1, 0x84]))
        described.definition(1, 20, [(3, 1, 0x02)], dev_fields=[(1, 2, 0)])
        described.data(1, bytes([90]) + struct.pack('<H', 250))

        undescribed = FitBuilder()
        undescribed.definition(0, 20, [(3, 1, 0x02)], dev_fields=[(1, 2, 0)])
        undescribed.data(0, bytes([91]) + struct.pack('<H', 251))

        first = _decoder(described.build()).read(developer_registry=registry)
        second = _decoder(undescribed.build()).read(developer_registry=registry)

        assert first.messages[1].developer_fields[0].value == 250
        assert len(registry) == 1
        assert registry.lookup(0, 1) is None
        assert second.messages[0].developer_fields[0].value == struct.pack('<H', 251)
        assert second.messages[0].developer_fields[0].base_type is None

    def test_invalid_timestamp_field_becomes_reference(self):
        '''Tests that field 253 holding the invalid value still sets the timestamp reference'''
        builder = FitBuilder()
        record_definition(builder, local_mesg_num=0)
        builder.data(0, record_payload(100, 60))
        builder.data(0, record_payload(0xFFFFFFFF, 61))
        builder.definition(1, 20, [(3, 1, 0x02)])
        builder.compressed(1, 2, b'\x3e')

        result = _decoder(builder.build()).read()

        assert result.ok
        assert result.messages[1].get_field(253).is_invalid is True
        # 0xFFFFFFE2 is below the reference, so 32 s are added and the result wraps at 2^32
        assert [message.timestamp for message in result.messages] == [100, 0xFFFFFFFF, 2]

    def test_stop_from_listener(self):
        '''Tests that stop() ends decoding between records with a partial result'''
        decoder = _decoder(_activity().build())
        seen = []

        def listener(message):
            seen.append(message)
            if len(seen) == 2:
                decoder.stop()

        result = decoder.read(mesg_listener=listener)

        assert result.cancelled is True
        assert result.ok
        assert len(result.messages) == 2
        assert seen == result.messages

    def test_read_twice_uses_fresh_session(self):
        '''Tests that definitions from one read do not leak into the next'''
        decoder = _decoder(_activity().build())

        first = decoder.read()
        second = decoder.read()

        assert first.messages == second.messages

    def test_is_fit(self):
        assert _decoder(_activity().build()).is_fit() is True
        assert _decoder(_activity().build(data_type=b'.FTT')).is_fit() is False
        assert _decoder(b'\x0e').is_fit() is False

    def test_check_integrity(self):
        assert _decoder(_activity().build()).check_integrity() is True
        assert _decoder(_activity().build(crc=0x1234)).check_integrity() is False
        assert _decoder(_activity().build()[:-1]).check_integrity() is False

    def test_integrity_checks_from_listener(self):
        '''Tests that is_fit() and check_integrity() during read() leave the file checksum check intact'''
        decoder = _decoder(_activity().build())
        checks = []

        def listener(message):
            checks.append((decoder.is_fit(), decoder.check_integrity()))

        result = decoder.read(mesg_listener=listener)

        assert result.ok
        assert result.warnings == []
        assert len(result.messages) == 4
        assert checks == [(True, True)] * 4

    def test_integrity_checks_from_listener_strict(self):
        decoder = _decoder(_activity().build())

        result = decoder.read(strict=True, mesg_listener=lambda message: decoder.check_integrity())

        assert result.ok
        assert len(result.messages) == 4

    def test_from_bytes_io(self):
        result = Decoder(Stream.from_bytes_io(BytesIO(_activity().build()))).read()

        assert len(result.messages) == 4

    def test_from_file(self, tmp_path):
        path = tmp_path / "activity.fit"
        path.write_bytes(_activity().build())

        result = Decoder(Stream.from_file(str(path))).read()

        assert len(result.messages) == 4

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(FitIOError):
            Stream.from_file(str(tmp_path / "missing.fit"))
