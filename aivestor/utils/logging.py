import contextvars
import json
import logging
from datetime import UTC, datetime

current_account_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "account_id", default="-"
)
current_request_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default="-"
)

# Fields a caller may attach with ``extra=`` that end up in the JSON line
EXTRA_FIELDS = ("duration_ms", "symbol", "version", "attempt", "endpoint")

# Audit values under these keys never reach the log
SENSITIVE_AUDIT_KEYS = frozenset({"password", "token", "credential", "credential_ref", "api_key"})

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, tagged with the request and ledger account."""

    def format(self, record):
        log_data = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "account_id": current_account_id.get(),
            "request_id": current_request_id.get(),
            "msg": record.getMessage(),
            "logger": record.name,
        }
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Audit lines are already JSON
    audit = logging.getLogger("audit")
    audit.propagate = False
    audit.handlers.clear()
    audit_handler = logging.StreamHandler()
    audit_handler.setFormatter(logging.Formatter("%(message)s"))
    audit.addHandler(audit_handler)
    audit.setLevel(logging.INFO)


def audit_record(event: str, user_id: str, account_id: str | None = None, **kwargs) -> dict:
    data = {
        "event": event,
        "user_id": user_id,
        "request_id": current_request_id.get(),
        "ts": datetime.now(UTC).isoformat(),
    }
    if account_id:
        data["account_id"] = account_id
    for key, value in kwargs.items():
        data[key] = "[FILTERED]" if key in SENSITIVE_AUDIT_KEYS else value
    return data


def audit_log(event: str, user_id: str, account_id: str | None = None, **kwargs) -> None:
    """Write one security/trade audit record to the ``audit`` logger."""
    record = audit_record(event, user_id, account_id, **kwargs)
    logging.getLogger("audit").info(json.dumps(record, ensure_ascii=False, default=str))
