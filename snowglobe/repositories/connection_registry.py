import logging
from typing import Dict, List, Optional

from snowglobe.models import ConnectionMetadata, ConnectionRecord, Role, ShakeEvent

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    In-memory store of registered connections, partitioned by role.

    All access happens on the Tornado IOLoop thread, so every method runs to
    completion before another handler can observe the registry. Records are
    frozen and replaced wholesale, never edited in place.
    """

    def __init__(self):
        self._partitions: Dict[Role, Dict[str, ConnectionRecord]] = {
            Role.CONTROLLER: {},
            Role.DISPLAY: {},
        }

    def register(self, connection_id: str, role: Role, metadata: ConnectionMetadata) -> ConnectionRecord:
        """Insert a record, replacing any existing one for the same id in either partition."""
        partition = self._partition(role)
        for other_role, other in self._partitions.items():
            if other_role is not role and other.pop(connection_id, None) is not None:
                logger.debug("Evicted %s from %s partition", connection_id, other_role.value)
        record = ConnectionRecord(
            id=connection_id,
            role=role,
            connected_at=metadata.connected_at,
            remote_address=metadata.remote_address,
            user_agent=metadata.user_agent,
        )
        partition[connection_id] = record
        return record

    def get(self, connection_id: str) -> Optional[ConnectionRecord]:
        for partition in self._partitions.values():
            record = partition.get(connection_id)
            if record is not None:
                return record
        return None

    def role_of(self, connection_id: str) -> Role:
        record = self.get(connection_id)
        return record.role if record else Role.UNREGISTERED

    def remove(self, connection_id: str) -> Optional[Role]:
        """Drop the record for ``connection_id``; returns the role it held, or None."""
        for role, partition in self._partitions.items():
            if partition.pop(connection_id, None) is not None:
                return role
        return None

    def set_last_shake(self, connection_id: str, shake: ShakeEvent) -> ConnectionRecord:
        partition = self._partitions[Role.CONTROLLER]
        record = partition.get(connection_id)
        if record is None:
            raise KeyError(connection_id)
        updated = record.model_copy(update={"last_shake": shake})
        partition[connection_id] = updated
        return updated

    def count(self, role: Role) -> int:
        return len(self._partition(role))

    def snapshot(self, role: Role) -> List[ConnectionRecord]:
        """Current records for ``role`` in registration order."""
        return list(self._partition(role).values())

    def ids(self, role: Role) -> List[str]:
        return list(self._partition(role).keys())

    def _partition(self, role: Role) -> Dict[str, ConnectionRecord]:
        try:
            return self._partitions[role]
        except KeyError:
            raise ValueError(f"no registry partition for role {role.value!r}") from None
