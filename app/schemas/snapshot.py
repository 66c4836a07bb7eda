"""
Versioned persistence envelope for a saved trade set.

v1: {"version": 1, "savedAt", "fileName": "a.csv", "trades": [...]}
v2: {"version": 2, "savedAt", "fileNames": ["a.csv", "b.csv"], "trades": [...]}

Older envelopes are upgraded one version at a time until they reach
CURRENT_VERSION. Trades carry their instants as ISO-8601 strings.
"""
import logging
from datetime import datetime, timezone
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.schemas.trade import Trade

logger = logging.getLogger(__name__)

CURRENT_VERSION = 2


class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    saved_at: Optional[datetime] = Field(None, alias="savedAt")
    trades: List[Trade]


class SnapshotV1(_Envelope):
    version: Literal[1] = 1
    file_name: Optional[str] = Field(None, alias="fileName")


class SnapshotV2(_Envelope):
    version: Literal[2] = 2
    file_names: List[str] = Field(default_factory=list, alias="fileNames")


Snapshot = SnapshotV2

SnapshotEnvelope = Annotated[Union[SnapshotV1, SnapshotV2], Field(discriminator="version")]
_envelope_adapter: TypeAdapter = TypeAdapter(SnapshotEnvelope)


def upgrade_v1_to_v2(envelope: SnapshotV1) -> SnapshotV2:
    return SnapshotV2(
        saved_at=envelope.saved_at,
        file_names=[envelope.file_name] if envelope.file_name else [],
        trades=list(envelope.trades),
    )


UPGRADES: Dict[int, Callable[[Any], Any]] = {
    1: upgrade_v1_to_v2,
}


def upgrade_to_current(envelope: Union[SnapshotV1, SnapshotV2]) -> Snapshot:
    while envelope.version != CURRENT_VERSION:
        envelope = UPGRADES[envelope.version](envelope)
    return envelope


def build_snapshot(
    trades: Sequence[Trade],
    file_names: Union[str, Sequence[str], None] = None,
    saved_at: Optional[datetime] = None,
) -> Snapshot:
    if file_names is None:
        names: List[str] = []
    elif isinstance(file_names, str):
        names = [file_names]
    else:
        names = list(file_names)

    return SnapshotV2(
        saved_at=saved_at or datetime.now(timezone.utc),
        file_names=names,
        trades=list(trades),
    )


def dump_snapshot(snapshot: Snapshot) -> str:
    return snapshot.model_dump_json(by_alias=True)


def parse_snapshot(payload: Union[str, bytes, Dict[str, Any], None]) -> Optional[Snapshot]:
    """
    Restore an envelope of any known version.

    Corrupt JSON, a missing trades list or an unknown version all yield None.
    """
    if payload is None:
        return None

    try:
        if isinstance(payload, (str, bytes)):
            envelope = _envelope_adapter.validate_json(payload)
        else:
            envelope = _envelope_adapter.validate_python(payload)
    except ValidationError as exc:
        logger.warning("Discarding unreadable trade snapshot: %s", exc.errors()[:3])
        return None

    return upgrade_to_current(envelope)
