import datetime as _dt

MIME_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "txt": "text/plain",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def as_utc(ts: _dt.datetime) -> _dt.datetime:
    """Naive datetimes are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=_dt.timezone.utc)
    return ts.astimezone(_dt.timezone.utc)


def to_iso(ts: _dt.datetime) -> str:
    return as_utc(ts).isoformat().replace("+00:00", "Z")


def parse_iso(value: str | _dt.datetime) -> _dt.datetime:
    if isinstance(value, _dt.datetime):
        ts = value
    else:
        ts = _dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    return as_utc(ts)


def mime_type_for(file_name: str) -> str:
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def format_file_size(size: int) -> str:
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value, i = float(size), 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 1):g} {units[i]}"
