"""
Run one Knesset sync from CLI.
"""

from __future__ import annotations

import argparse

from app.domain.sync_run import RunStatus
from app.logging_utils import configure_logging
from app.schemas.sync_run import SyncRunReport
from app.services.sync_orchestrator_service import get_sync_orchestrator
from app.startup import validate_environment


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync parties, members, bills, committees and votes.")
    parser.add_argument(
        "--errors",
        dest="show_errors",
        action="store_true",
        help="Include recorded error messages in the printed report.",
    )
    args = parser.parse_args()

    configure_logging()
    validate_environment()

    result = get_sync_orchestrator().run()
    report = SyncRunReport.from_result(result)
    exclude = None if args.show_errors else {"errors"}
    print(report.model_dump_json(indent=2, exclude=exclude))
    return 1 if result.status == RunStatus.FAILED else 0


if __name__ == "__main__":
    raise SystemExit(main())
