'''errors.py: Contains the exceptions raised while decoding FIT files.'''


class FitRuntimeError(RuntimeError):
    '''
    Base class for every decoding failure.

    Attributes:
        offset: Byte offset from the start of the file at which the problem
            was detected, or None when no position applies.
    '''

    def __init__(self, message: str, offset: int = None):
        self.offset = offset
        location = f" at byte {offset}" if offset is not None else ""
        super().__init__(f"FIT Runtime Error {message}{location}")


class FitIOError(FitRuntimeError):
    '''The byte source could not be opened or read.'''


class BadMagicError(FitRuntimeError):
    '''The file header does not carry the ".FIT" data type marker.'''


class InvalidHeaderSizeError(FitRuntimeError):
    '''The file header declares a size other than 12 or 14 bytes.'''


class HeaderChecksumMismatch(FitRuntimeError):
    '''The 14 byte header's own checksum does not match. Only ever a warning.'''


class InvalidArchitectureError(FitRuntimeError):
    '''A definition record's architecture byte is neither 0 nor 1.'''


class InvalidBaseTypeError(FitRuntimeError):
    '''A field definition names a base type that is not in the base type table.'''


class ReservedBitSetError(FitRuntimeError):
    '''A normal record header has its reserved bit set.'''


class MissingDefinitionError(FitRuntimeError):
    '''A data record references a local message type with no bound definition.'''


class NoTimestampReferenceError(FitRuntimeError):
    '''A compressed timestamp header appeared before any absolute timestamp.'''


class TruncatedFileError(FitRuntimeError):
    '''The byte source ended before the declared data was read.'''


class OverrunFileError(FitRuntimeError):
    '''A record would extend past the header's declared data size.'''


class ChecksumMismatchError(FitRuntimeError):
    '''The file's trailing checksum does not match the computed one.'''
