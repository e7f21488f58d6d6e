'''local_types.py: Contains the table of local message types bound by definition records.'''

from . import fit as FIT
from .definition import DefinitionLayout
from .errors import MissingDefinitionError

NUM_LOCAL_MESG_TYPES = FIT.LOCAL_MESG_NUM_MASK + 1


class LocalTypeTable:
    '''
    Sixteen slots, each empty or holding the most recently bound definition.

    There is no history: binding a slot replaces whatever it held.
    '''

    def __init__(self):
        self._slots = [None] * NUM_LOCAL_MESG_TYPES

    def bind(self, local_mesg_num: int, layout: DefinitionLayout):
        self._check_slot(local_mesg_num)
        self._slots[local_mesg_num] = layout

    def resolve(self, local_mesg_num: int, offset: int = None) -> DefinitionLayout:
        '''Returns the layout bound to a slot or raises MissingDefinitionError.'''
        self._check_slot(local_mesg_num)

        layout = self._slots[local_mesg_num]
        if layout is None:
            raise MissingDefinitionError(
                f"no definition for local message type {local_mesg_num}", offset)

        return layout

    def clear(self):
        self._slots = [None] * NUM_LOCAL_MESG_TYPES

    def __contains__(self, local_mesg_num):
        return 0 <= local_mesg_num < NUM_LOCAL_MESG_TYPES and self._slots[local_mesg_num] is not None

    def __len__(self):
        return sum(1 for layout in self._slots if layout is not None)

    @staticmethod
    def _check_slot(local_mesg_num: int):
        if not 0 <= local_mesg_num < NUM_LOCAL_MESG_TYPES:
            raise ValueError(f"local message type {local_mesg_num} out of range")
