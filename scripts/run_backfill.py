"""
Replay stored bill-role snapshots from CLI.
"""

from __future__ import annotations

import argparse

from app.logging_utils import configure_logging
from app.schemas.sync_run import BackfillReport
from app.services.bill_role_backfill_service import get_bill_role_backfill_service
from app.startup import validate_environment


def main() -> int:
    parser = argparse.ArgumentParser(description="Re-create bill roles from raw snapshots without network calls.")
    parser.parse_args()

    configure_logging()
    validate_environment()

    result = get_bill_role_backfill_service().run()
    print(BackfillReport.from_result(result).model_dump_json(indent=2))
    return 1 if result.errors and not (result.roles_created or result.roles_updated) else 0


if __name__ == "__main__":
    raise SystemExit(main())
