"""Messages exchanged between the explanation view and its host.

The set of kinds is closed: parse_message() rejects anything not listed in
MessageKind. Inbound messages are requests made to the view; outbound
messages are what the view renders.
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class MessageKind(str, Enum):
    # Inbound
    READY = 'ready'
    REQUEST_EXPLANATION = 'request_explanation'
    COPY_EXPLANATION = 'copy_explanation'
    OPEN_SETTINGS = 'open_settings'
    SHOW_HISTORY = 'show_history'
    CLEAR_HISTORY = 'clear_history'
    LOAD_HISTORY_ITEM = 'load_history_item'

    # Outbound
    UPDATE_CONTENT = 'update_content'
    SHOW_ERROR = 'show_error'
    SHOW_LOADING = 'show_loading'
    HISTORY = 'history'
    HISTORY_CLEARED = 'history_cleared'
    CONFIGURATION_NEEDED = 'configuration_needed'
    WELCOME = 'welcome'


INBOUND_KINDS = frozenset({
    MessageKind.READY,
    MessageKind.REQUEST_EXPLANATION,
    MessageKind.COPY_EXPLANATION,
    MessageKind.OPEN_SETTINGS,
    MessageKind.SHOW_HISTORY,
    MessageKind.CLEAR_HISTORY,
    MessageKind.LOAD_HISTORY_ITEM,
})


@dataclass(frozen=True)
class Message:
    """Base for every message; ``kind`` is fixed per subclass."""

    kind = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['type'] = self.kind.value
        return data


# ── Inbound ──

@dataclass(frozen=True)
class Ready(Message):
    kind = MessageKind.READY


@dataclass(frozen=True)
class RequestExplanation(Message):
    kind = MessageKind.REQUEST_EXPLANATION


@dataclass(frozen=True)
class CopyExplanation(Message):
    kind = MessageKind.COPY_EXPLANATION
    text: str = ''


@dataclass(frozen=True)
class OpenSettings(Message):
    kind = MessageKind.OPEN_SETTINGS


@dataclass(frozen=True)
class ShowHistory(Message):
    kind = MessageKind.SHOW_HISTORY


@dataclass(frozen=True)
class ClearHistory(Message):
    kind = MessageKind.CLEAR_HISTORY


@dataclass(frozen=True)
class LoadHistoryItem(Message):
    kind = MessageKind.LOAD_HISTORY_ITEM
    index: int = 0


# ── Outbound ──

@dataclass(frozen=True)
class UpdateContent(Message):
    kind = MessageKind.UPDATE_CONTENT
    explanation: str = ''
    has_history: bool = False


@dataclass(frozen=True)
class ShowError(Message):
    kind = MessageKind.SHOW_ERROR
    message: str = ''


@dataclass(frozen=True)
class ShowLoading(Message):
    kind = MessageKind.SHOW_LOADING


@dataclass(frozen=True)
class HistorySummary(Message):
    """Abbreviated history entries, newest first."""
    kind = MessageKind.HISTORY
    items: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class HistoryCleared(Message):
    kind = MessageKind.HISTORY_CLEARED


@dataclass(frozen=True)
class ConfigurationNeeded(Message):
    kind = MessageKind.CONFIGURATION_NEEDED


@dataclass(frozen=True)
class Welcome(Message):
    kind = MessageKind.WELCOME


def parse_message(data: Dict[str, Any]) -> Message:
    """Build an inbound message from its dict form.

    Args:
        data: Mapping with a ``type`` key plus that kind's fields

    Returns:
        The matching inbound message

    Raises:
        ValueError: If the type is unknown, outbound, or its fields are invalid
    """
    raw_kind = data.get('type')
    try:
        kind = MessageKind(raw_kind)
    except ValueError:
        raise ValueError(f"Unknown message type: {raw_kind!r}")

    if kind not in INBOUND_KINDS:
        raise ValueError(f"Not an inbound message type: {kind.value}")

    if kind == MessageKind.READY:
        return Ready()
    elif kind == MessageKind.REQUEST_EXPLANATION:
        return RequestExplanation()
    elif kind == MessageKind.COPY_EXPLANATION:
        return CopyExplanation(text=str(data.get('text', '')))
    elif kind == MessageKind.OPEN_SETTINGS:
        return OpenSettings()
    elif kind == MessageKind.SHOW_HISTORY:
        return ShowHistory()
    elif kind == MessageKind.CLEAR_HISTORY:
        return ClearHistory()
    else:
        index = data.get('index')
        if not isinstance(index, int) or isinstance(index, bool):
            raise ValueError(f"load_history_item needs an integer index, got {index!r}")
        return LoadHistoryItem(index=index)
