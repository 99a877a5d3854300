# Import all models here so Alembic can discover them.

from artwalls.models.artist import Artist  # noqa: F401
from artwalls.models.venue import Venue  # noqa: F401
from artwalls.models.artwork import Artwork  # noqa: F401
from artwalls.models.order import Order, TransferRecord  # noqa: F401
from artwalls.models.processed_event import ProcessedEvent  # noqa: F401
from artwalls.models.outbox import OutboxMessage  # noqa: F401
from artwalls.models.audit import AuditEvent  # noqa: F401
