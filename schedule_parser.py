# schedule_parser.py

import csv
import io
import logging
import re
from collections import namedtuple
from datetime import date
from enum import Enum

# --- Errors ---
class ScheduleDataError(Exception):
    """Base class for everything the schedule pipeline raises."""

class MalformedDocument(ScheduleDataError):
    pass

class SourceUnavailable(ScheduleDataError):
    pass

class RowError(ScheduleDataError):
    """A single row could not be normalized. Never fatal to the batch."""
    def __init__(self, column, message):
        super().__init__(message)
        self.column = column
    def to_dict(self, row):
        return {"row": row, "error": type(self).__name__, "column": self.column, "message": str(self)}

class MissingField(RowError):
    def __init__(self, column):
        super().__init__(column, f"Missing required field '{column}'.")

class InvalidFormat(RowError):
    def __init__(self, column, value):
        super().__init__(column, f"Invalid value {value!r} for field '{column}'.")
        self.value = value

# --- Status ---
class ScheduleStatus(str, Enum):
    SCHEDULED = 'SCHEDULED'
    CONFIRMED = 'CONFIRMED'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    UNKNOWN = 'UNKNOWN'

    @property
    def label(self): return STATUS_DISPLAY[self][0]
    @property
    def color(self): return STATUS_DISPLAY[self][1]

STATUS_DISPLAY = {
    ScheduleStatus.SCHEDULED: ('Scheduled', 'blue'),
    ScheduleStatus.CONFIRMED: ('Confirmed', 'green'),
    ScheduleStatus.IN_PROGRESS: ('In Progress', 'yellow'),
    ScheduleStatus.COMPLETED: ('Completed', 'gray'),
    ScheduleStatus.CANCELLED: ('Cancelled', 'red'),
    ScheduleStatus.UNKNOWN: ('Unknown', 'slate'),
}
STATUS_ALIASES = {
    'canceled': [ScheduleStatus.CANCELLED],
    'done': [ScheduleStatus.COMPLETED],
    'complete': [ScheduleStatus.COMPLETED],
    'pending': [ScheduleStatus.SCHEDULED],
    'started': [ScheduleStatus.IN_PROGRESS],
}
_SEPARATORS = re.compile(r'[\s_\-]+')

def _status_key(raw):
    return _SEPARATORS.sub('_', raw.strip().lower()).strip('_')

def _build_status_table():
    table = {}
    for status in ScheduleStatus:
        if status is ScheduleStatus.UNKNOWN: continue
        for name in (status.value, status.label):
            table.setdefault(_status_key(name), []).append(status)
    for key, statuses in STATUS_ALIASES.items():
        table.setdefault(_status_key(key), []).extend(statuses)
    return table

STATUS_TABLE = _build_status_table()

StatusResult = namedtuple('StatusResult', ['status', 'label'])

def normalize_status(raw):
    """Map a loosely formatted status string to a canonical status.

    Total: unrecognized strings resolve to UNKNOWN and keep the original
    text as their label. When a key matches several statuses the
    lexicographically first member value wins.
    """
    text = (raw or '').strip()
    matches = STATUS_TABLE.get(_status_key(text), [])
    if not matches: return StatusResult(ScheduleStatus.UNKNOWN, text or ScheduleStatus.UNKNOWN.label)
    status = min(set(matches), key=lambda s: s.value)
    return StatusResult(status, status.label)

def resolve_status(value):
    """Resolve a configured default status, e.g. 'confirmed' or 'In Progress'."""
    if not value: return DEFAULT_STATUS
    if isinstance(value, ScheduleStatus): return value
    status = normalize_status(value).status
    if status is ScheduleStatus.UNKNOWN and _status_key(value) != 'unknown':
        raise ValueError(f"Unrecognized schedule status {value!r}.")
    return status

# --- Schedule ---
ScheduleColumns = namedtuple('ScheduleColumns', ['employee', 'date', 'shift', 'status', 'id'])
DEFAULT_COLUMNS = ScheduleColumns(employee='employee', date='date', shift='shift', status='status', id='id')
DEFAULT_STATUS = ScheduleStatus.SCHEDULED

_BaseSchedule = namedtuple('_BaseSchedule', ['id', 'employee', 'date', 'shift', 'start_time', 'end_time', 'status', 'status_label'])

class Schedule(_BaseSchedule):
    """One employee's assignment for one shift on one day."""
    __slots__ = ()
    def to_dict(self):
        return { "id": self.id, "employee": self.employee, "date": self.date.isoformat(), "shift": self.shift, "startTime": self.start_time, "endTime": self.end_time, "status": self.status.value, "statusLabel": self.status_label, "statusColor": self.status.color }

NormalizeResult = namedtuple('NormalizeResult', ['schedules', 'errors'])

_ISO_DATE = re.compile(r'^([0-9]{4})-([0-9]{2})-([0-9]{2})$')
_TIME_RANGE = re.compile(r'^([0-9]{2})([0-9]{2})-([0-9]{2})([0-9]{2})$')

def parse_date(value, column='date'):
    match = _ISO_DATE.match(value)
    if not match: raise InvalidFormat(column, value)
    try: return date(*map(int, match.groups()))
    except ValueError: raise InvalidFormat(column, value) from None

def parse_shift_times(shift):
    """Return (start, end) as HH:MM for an HHMM-HHMM descriptor, else (None, None)."""
    if shift == '0000-2400': return '00:00', '23:59'
    match = _TIME_RANGE.match(shift)
    if not match: return None, None
    sh, sm, eh, em = match.groups()
    return f"{sh}:{sm}", f"{eh}:{em}"

# --- Ingestion ---
def read_rows(lines, required_columns=()):
    """Yield (index, row) pairs from CSV text, the first non-blank row being the header.

    `lines` may be a string or any iterable of lines. Blank lines are skipped
    and do not consume an index. Trailing empty fields are tolerated; any
    other surplus field makes the whole document malformed.
    """
    if isinstance(lines, str): lines = io.StringIO(lines)
    reader = csv.reader(lines)
    header = next((r for r in reader if any(c.strip() for c in r)), None)
    if header is None: raise MalformedDocument("Document has no header row.")
    header = [c.strip() for c in header]
    header[0] = header[0].lstrip('\ufeff').strip()
    while header and not header[-1]: header.pop()
    if not all(header): raise MalformedDocument("Header contains a blank column name.")
    if len(set(header)) != len(header): raise MalformedDocument("Header contains duplicate column names.")
    missing = [c for c in required_columns if c not in header]
    if missing: raise MalformedDocument(f"Header is missing required column(s): {', '.join(missing)}.")
    width, index = len(header), 0
    for record in reader:
        if not any(c.strip() for c in record): continue
        if len(record) > width:
            if any(c.strip() for c in record[width:]):
                raise MalformedDocument(f"Data row {index} has {len(record)} fields, header has {width}.")
            record = record[:width]
        record = record + [''] * (width - len(record))
        yield index, dict(zip(header, record))
        index += 1

# --- Normalizer ---
def normalize_row(index, row, columns=DEFAULT_COLUMNS, default_status=DEFAULT_STATUS):
    values = {}
    for field in ('employee', 'date', 'shift'):
        column = getattr(columns, field)
        value = (row.get(column) or '').strip()
        if not value: raise MissingField(column)
        values[field] = value
    schedule_date = parse_date(values['date'], columns.date)
    raw_status = (row.get(columns.status) or '').strip() if columns.status else ''
    status, label = normalize_status(raw_status) if raw_status else (default_status, default_status.label)
    raw_id = (row.get(columns.id) or '').strip() if columns.id else ''
    start_time, end_time = parse_shift_times(values['shift'])
    return Schedule(id=raw_id or str(index + 1), employee=values['employee'], date=schedule_date, shift=values['shift'], start_time=start_time, end_time=end_time, status=status, status_label=label)

def normalize_rows(rows, columns=DEFAULT_COLUMNS, default_status=DEFAULT_STATUS):
    """Normalize every (index, row) pair, collecting per-row errors instead of raising them."""
    schedules, errors = [], []
    for index, row in rows:
        try: schedules.append(normalize_row(index, row, columns, default_status))
        except RowError as e: errors.append((index, e))
    return NormalizeResult(schedules, errors)

# --- Facade ---
def read_source(path):
    try:
        with open(path, encoding='utf-8', newline='') as f: return f.read()
    except UnicodeDecodeError as e:
        raise MalformedDocument(f"Schedule document {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise SourceUnavailable(f"Cannot read schedule document {path}: {e}") from e

def load_schedule_data(path, columns=None, default_status=None, fail_on_row_errors=False):
    columns = columns or DEFAULT_COLUMNS
    default_status = resolve_status(default_status)
    content = read_source(path)
    rows = read_rows(content, required_columns=(columns.employee, columns.date, columns.shift))
    result = normalize_rows(rows, columns, default_status)
    for index, error in result.errors:
        logging.warning(f"Skipping schedule row {index} in {path}: {error}")
    if result.errors and fail_on_row_errors:
        raise MalformedDocument(f"{len(result.errors)} row(s) in {path} could not be normalized.")
    return result

def get_schedule_data(path, columns=None, default_status=None, fail_on_row_errors=False):
    """Read the schedule document and return its valid entries in source order."""
    return load_schedule_data(path, columns, default_status, fail_on_row_errors).schedules

def format_schedule_table(schedules):
    lines = [f"Current Schedule ({len(schedules)} assignments):", "", "Employee | Date | Shift | Status", "---------|------|-------|-------"]
    for s in schedules:
        lines.append(f"{s.employee.ljust(20)} | {s.date.isoformat()} | {s.shift.ljust(9)} | {s.status_label}")
    return '\n'.join(lines) + '\n'
