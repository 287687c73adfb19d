"""
Rebuild party/topic scores from CLI.
"""

from __future__ import annotations

import argparse

from app.logging_utils import configure_logging
from app.schemas.sync_run import AggregateReport
from app.services.party_topic_aggregation_service import get_party_topic_aggregation_service
from app.startup import validate_environment


def main() -> int:
    parser = argparse.ArgumentParser(description="Recompute the party/topic legislative activity aggregate.")
    parser.parse_args()

    configure_logging()
    validate_environment()

    result = get_party_topic_aggregation_service().run()
    print(AggregateReport.from_result(result).model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
