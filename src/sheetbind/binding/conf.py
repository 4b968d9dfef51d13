# Strategy/Preference/Adjustable Parameters for record binding.

from .spec import EnumCellValueType

N_ROW_IDX_HEADER = 1

DEFAULT_VALUE_TYPE = EnumCellValueType.STRING
DEFAULT_HEADER_VALUE_TYPE = EnumCellValueType.STRING
