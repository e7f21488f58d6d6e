'''timestamp.py: Contains the tracker that rebuilds compressed timestamps.'''

from . import fit as FIT
from .errors import NoTimestampReferenceError

UINT32_MASK = 0xFFFFFFFF


class TimestampTracker:
    '''
    Keeps the last absolute timestamp seen in a file.

    Compressed timestamp headers carry only the low 5 bits of the time; the
    full value is rebuilt from the last timestamp, rolling over every 32 seconds.
    '''

    def __init__(self):
        self._last_timestamp = None

    @property
    def last_timestamp(self):
        return self._last_timestamp

    def set_absolute(self, timestamp: int):
        self._last_timestamp = timestamp & UINT32_MASK

    def apply_offset(self, time_offset: int, offset: int = None) -> int:
        '''Rebuilds the timestamp for a compressed header and makes it the new reference.'''
        if self._last_timestamp is None:
            raise NoTimestampReferenceError(
                "compressed timestamp header before any timestamp", offset)

        last_timestamp = self._last_timestamp
        timestamp = (last_timestamp & ~FIT.COMPRESSED_TIME_MASK) | time_offset
        if timestamp < last_timestamp:
            timestamp += FIT.COMPRESSED_TIME_MASK + 1

        self._last_timestamp = timestamp & UINT32_MASK
        return self._last_timestamp
