import os

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./ops_reports.sqlite3")

# IANA zone used for hour-of-day and day-of-week dimensions
REPORT_TIMEZONE: str = os.getenv("REPORT_TIMEZONE", "UTC")
# Size of the window echoed back as dateRange in the advanced report
REPORT_WINDOW_DAYS: int = int(os.getenv("REPORT_WINDOW_DAYS", "30"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma separated, e.g. "ops_reports.features.reports,ops_reports.main". Empty allows everything.
LOG_NAMESPACES: list[str] = [
    ns.strip() for ns in os.getenv("LOG_NAMESPACES", "").split(",") if ns.strip()
]

TORTOISE_ORM_CONFIG = {
    "connections": {"default": DATABASE_URL},
    "apps": {
        "models": {  # This is an app label, can be anything
            "models": [
                "ops_reports.features.documents.models",
                "aerich.models",  # For Aerich migrations
            ],
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}
