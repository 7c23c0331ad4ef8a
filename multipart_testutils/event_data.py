from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class EventFuncID:
    """Identifies the server side event function and its positional parameters."""

    id: str = ""
    params: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.id:
            data["id"] = self.id
        if self.params:
            data["params"] = list(self.params)
        return data


@dataclass
class Event:
    """Component state sent along with an event.

    Attributes:
        checked: Checkbox state.
        from_: Lower bound of a date range picker, serialized as ``from``.
        to: Upper bound of a date range picker.
        value: Input or date picker value.
    """

    checked: bool = False
    from_: str = ""
    to: str = ""
    value: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.checked:
            data["checked"] = self.checked
        if self.from_:
            data["from"] = self.from_
        if self.to:
            data["to"] = self.to
        if self.value:
            data["value"] = self.value
        return data


@dataclass
class EventBody:
    event_func_id: EventFuncID = field(default_factory=EventFuncID)
    event: Event = field(default_factory=Event)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        event_func_id = self.event_func_id.to_dict()
        if event_func_id:
            data["eventFuncId"] = event_func_id
        event = self.event.to_dict()
        if event:
            data["event"] = event
        return data
