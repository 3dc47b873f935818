from typing import Any

from fastapi.exceptions import RequestValidationError

# Storage bookkeeping columns that never leave the API.
INTERNAL_FIELDS = {"seq", "pair_key"}


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camelize(value: Any) -> Any:
    """Recursively rename snake_case row keys to the camelCase wire format."""
    if isinstance(value, dict):
        return {to_camel(k): camelize(v) for k, v in value.items() if k not in INTERNAL_FIELDS}
    if isinstance(value, list):
        return [camelize(v) for v in value]
    return value


def validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    msg = str(first.get("msg") or "Invalid value")
    return f"{'.'.join(loc)}: {msg}" if loc else msg
