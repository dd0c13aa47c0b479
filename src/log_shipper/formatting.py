"""
Bulk NDJSON record formatting.

Every record becomes an index action line followed by the document line,
the framing bulk ingestion endpoints expect.
"""
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord('', 0, '', 0, '', None, None)).keys()
) | {'message', 'asctime', 'taskName'}


class BulkRecordFormatter(logging.Formatter):
    """
    Render a LogRecord as two NDJSON lines.

    The index name is a strftime pattern expanded on the record's UTC time,
    e.g. "logs-%Y.%m.%d" -> "logs-2024.05.17".
    """

    def __init__(self, index: str = "logs-%Y.%m.%d", include_caller_data: bool = False):
        super().__init__()
        self.index = index
        self.include_caller_data = include_caller_data

    def index_name(self, record: logging.LogRecord) -> str:
        return time.strftime(self.index, time.gmtime(record.created))

    def to_document(self, record: logging.LogRecord) -> dict[str, Any]:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        document: dict[str, Any] = {
            '@timestamp': created.isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'message': record.getMessage(),
            'logger': record.name,
            'level': record.levelname,
            'thread': record.threadName,
        }

        if record.exc_info:
            document['exception'] = self.formatException(record.exc_info)
        elif record.exc_text:
            document['exception'] = record.exc_text
        if record.stack_info:
            document['stack'] = self.formatStack(record.stack_info)

        if self.include_caller_data:
            document['caller'] = {
                'file': record.pathname,
                'line': record.lineno,
                'function': record.funcName,
            }

        properties = {
            key: value for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith('_')
        }
        if properties:
            document['properties'] = properties

        return document

    def format(self, record: logging.LogRecord) -> str:
        action = {'index': {'_index': self.index_name(record)}}
        document = self.to_document(record)
        return (
            json.dumps(action, separators=(',', ':')) + '\n'
            + json.dumps(document, separators=(',', ':'), default=str, ensure_ascii=False) + '\n'
        )
