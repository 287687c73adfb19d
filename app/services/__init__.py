"""
app/services package marker.
"""

from app.services.bill_role_backfill_service import (
    BackfillResult,
    BillRoleBackfillService,
    get_bill_role_backfill_service,
)
from app.services.party_topic_aggregation_service import (
    AggregateResult,
    PartyTopicAggregationService,
    get_party_topic_aggregation_service,
)
from app.services.sync_orchestrator_service import (
    SyncOrchestrator,
    get_sync_orchestrator,
)

__all__ = [
    "BackfillResult",
    "BillRoleBackfillService",
    "get_bill_role_backfill_service",
    "AggregateResult",
    "PartyTopicAggregationService",
    "get_party_topic_aggregation_service",
    "SyncOrchestrator",
    "get_sync_orchestrator",
]
