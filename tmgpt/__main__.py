import asyncio

from tmgpt.core.config import get_settings
from tmgpt.core.logging_config import configure_logging
from tmgpt.orchestrator import print_report, run


def main() -> None:
    settings = get_settings()
    configure_logging(settings.app.LOG_LEVEL, json_format=settings.app.LOG_JSON)
    report = asyncio.run(run(settings))
    print_report(report)


if __name__ == "__main__":
    main()
