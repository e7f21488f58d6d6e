'''developer.py: Contains the registry of developer field descriptions.'''

import logging
from dataclasses import dataclass
from typing import Optional

from . import fit as FIT

logger = logging.getLogger(__name__)

# field_description message field numbers
DEVELOPER_DATA_INDEX_FIELD = 0
FIELD_DEFINITION_NUMBER_FIELD = 1
FIT_BASE_TYPE_ID_FIELD = 2
FIELD_NAME_FIELD = 3
UNITS_FIELD = 8


@dataclass(frozen=True)
class DeveloperFieldDescription:
    '''What a field_description message says about one developer field.'''
    developer_data_index: int
    field_definition_number: int
    base_type: int
    field_name: Optional[str] = None
    units: Optional[str] = None


class DeveloperFieldRegistry:
    '''
    Developer field descriptions keyed by (developer_data_index, field_definition_number).

    Callers can register descriptions up front; the decoder also registers every
    field_description message it decodes.
    '''

    def __init__(self):
        self._descriptions = {}

    def register(self, description: DeveloperFieldDescription):
        self._descriptions[(description.developer_data_index,
                            description.field_definition_number)] = description

    def lookup(self, developer_data_index: int, field_definition_number: int):
        '''Returns the description for a developer field, or None if it was never described.'''
        return self._descriptions.get((developer_data_index, field_definition_number))

    def register_from_message(self, message) -> Optional[DeveloperFieldDescription]:
        '''
        Registers the description carried by a decoded field_description message.

        Returns the registered description, or None when the message lacks a
        valid index, field number or base type.
        '''
        values = {decoded.field_num: decoded for decoded in message.fields}

        required = (DEVELOPER_DATA_INDEX_FIELD, FIELD_DEFINITION_NUMBER_FIELD, FIT_BASE_TYPE_ID_FIELD)
        if any(field_num not in values or values[field_num].is_invalid
               or not isinstance(values[field_num].value, int) for field_num in required):
            logger.debug("field_description at byte %s is incomplete, not registered", message.offset)
            return None

        base_type = FIT.base_type_from_byte(values[FIT_BASE_TYPE_ID_FIELD].value)
        if base_type is None:
            logger.warning("field_description at byte %s names unknown base type %s",
                           message.offset, values[FIT_BASE_TYPE_ID_FIELD].value)
            return None

        description = DeveloperFieldDescription(
            developer_data_index=values[DEVELOPER_DATA_INDEX_FIELD].value,
            field_definition_number=values[FIELD_DEFINITION_NUMBER_FIELD].value,
            base_type=base_type,
            field_name=_string_value(values.get(FIELD_NAME_FIELD)),
            units=_string_value(values.get(UNITS_FIELD)),
        )
        self.register(description)
        return description

    def copy(self) -> 'DeveloperFieldRegistry':
        '''Returns a registry holding the same descriptions, independent of this one.'''
        registry = DeveloperFieldRegistry()
        registry._descriptions = dict(self._descriptions)
        return registry

    def __len__(self):
        return len(self._descriptions)


def _string_value(decoded):
    if decoded is None or decoded.is_invalid:
        return None
    if decoded.is_array:
        return decoded.value[0] if decoded.value else None
    return decoded.value if isinstance(decoded.value, str) else None
