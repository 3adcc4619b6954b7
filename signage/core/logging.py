import logging
import sys

# attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "extra"}


class SafeExtraFormatter(logging.Formatter):
    """
    Formatter that renders the `extra={...}` fields of a record as a dict
    and never breaks when a record carries none.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.extra = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED
        }
        return super().format(record)


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)

    formatter = SafeExtraFormatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s | %(extra)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()
    root.addHandler(handler)
