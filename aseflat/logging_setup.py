# Log formatting and exception reporting for the command line tools

import logging
import sys

from aseflat.errors import AsepriteError

_level_marks = [
    (logging.CRITICAL, "💥 "),
    (logging.ERROR, "🔥 "),
    (logging.WARNING, "⚠️ "),
    (logging.INFO, "  "),
]


class _LogFormatter(logging.Formatter):
    def format(self, record):
        out = record.getMessage().strip()
        name = record.name.removeprefix("aseflat.")
        if name != "root":
            out = f"{name}: {out}"
        mark = next((m for lv, m in _level_marks if record.levelno >= lv), "🕸  ")
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        extra = [t for t in (record.exc_text, record.stack_info) if t]
        return "\n".join([mark + out] + extra)


def _sys_exception_hook(exc_type, exc_value, exc_tb):
    exc_info = (exc_type, exc_value, exc_tb)
    if issubclass(exc_type, KeyboardInterrupt):
        logging.critical("*** KeyboardInterrupt (^C)! ***")
    elif issubclass(exc_type, AsepriteError):
        logging.critical(f"{exc_type.__name__}: {exc_value}")
        logging.debug("Traceback", exc_info=exc_info)
    else:
        logging.critical("Uncaught exception", exc_info=exc_info)


def enable_debug():
    logging.getLogger().setLevel(logging.DEBUG)
    logging.getLogger("PIL").setLevel(logging.INFO)


# Initialize on import.
_handler = logging.StreamHandler(stream=sys.stderr)
_handler.setFormatter(_LogFormatter())
logging.basicConfig(level=logging.INFO, handlers=[_handler])
sys.excepthook = _sys_exception_hook
