from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, NewType, Optional, Tuple, Union

VertexId = NewType("VertexId", str)
EdgeId = NewType("EdgeId", str)
Label = NewType("Label", str)

NativeScalar = Union[bool, int, float, str, bytes, date, datetime, time, timedelta]

# Values are copied off source records untouched, so anything can appear here;
# whether the store can hold them is decided by the bulk executor.
PropertyValue = Any

PartitionKey = Optional[Union[NativeScalar, List[object], Dict[str, object]]]

FieldPair = Tuple[str, PropertyValue]
