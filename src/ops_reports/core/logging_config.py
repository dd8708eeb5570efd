import logging
import sys

from .config import LOG_LEVEL, LOG_NAMESPACES


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)

log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app_logger = logging.getLogger("ops_reports")
app_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)

# --- Namespace-based Filter ---
# LOG_NAMESPACES="ops_reports.features.reports,ops_reports.main" restricts console output to
# those namespaces. Unset or empty lets every "ops_reports.*" record through.
console_handler.addFilter(NamespaceFilter(LOG_NAMESPACES))
app_logger.addHandler(console_handler)

# --- Namespace-specific logging level configuration ---
# The aggregation engine reports per-pass diagnostics (skipped orders, bucket
# sizes) at DEBUG. To see them without turning on DEBUG everywhere:
# logging.getLogger("ops_reports.features.reports.engine").setLevel(logging.DEBUG)

# And perhaps less verbose logging for the storage collaborator:
# logging.getLogger("ops_reports.features.documents").setLevel(logging.WARNING)

# Note: modules use logging.getLogger(__name__), which creates loggers like
# "ops_reports.features.reports.service". Child loggers inherit levels from their
# parents (e.g., "ops_reports.features.reports") or from "ops_reports" if not set.
