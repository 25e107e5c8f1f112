from services.merch_service.models import (
    FeeStructure,
    StreamerFeeStatus,
    SuperfanFeeStatus,
)
from services.merch_service.repositories.base import SnapshotRepository


def superfan_key(user_id: str, streamer_id: str) -> str:
    return f"{user_id}:{streamer_id}"


class FeeStructureRepository(SnapshotRepository[FeeStructure]):
    document_key = "fees.structures"
    model = FeeStructure


class StreamerFeeRepository(SnapshotRepository[StreamerFeeStatus]):
    document_key = "fees.streamers"
    model = StreamerFeeStatus

    def key_of(self, item: StreamerFeeStatus) -> str:
        return item.streamer_id


class SuperfanFeeRepository(SnapshotRepository[SuperfanFeeStatus]):
    document_key = "fees.superfans"
    model = SuperfanFeeStatus

    def key_of(self, item: SuperfanFeeStatus) -> str:
        return superfan_key(item.user_id, item.streamer_id)
