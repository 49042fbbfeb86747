"""Domain package. All ORM models are imported here so Alembic autogenerate detects them.

  organization.py  Tenant boundary and its AI budget settings
  user.py          Users and their role within an org
  project.py       Projects (budget, contract value, cost)
  invoice.py       Invoices, applied payments and per-org number counters
  daily_log.py     Field-reported daily log entries
  equipment.py     Equipment inventory and checkout history
  voice_log.py     Uploaded voice logs and the device-side upload queue
  ai_usage.py      Per-org daily AI usage counters
  audit.py         Immutable audit trail (never updated or deleted)
  mixins.py        Shared TimestampMixin, TenantMixin
"""

from contractoros.domain.ai_usage import AIUsageDaily
from contractoros.domain.audit import AuditTrail
from contractoros.domain.daily_log import DailyLog
from contractoros.domain.equipment import Equipment, EquipmentCheckout
from contractoros.domain.invoice import Invoice, InvoiceCounter, InvoicePayment
from contractoros.domain.organization import Organization
from contractoros.domain.project import Project
from contractoros.domain.user import User
from contractoros.domain.voice_log import VoiceLog, VoiceQueueItem

__all__ = [
    "AIUsageDaily",
    "AuditTrail",
    "DailyLog",
    "Equipment",
    "EquipmentCheckout",
    "Invoice",
    "InvoiceCounter",
    "InvoicePayment",
    "Organization",
    "Project",
    "User",
    "VoiceLog",
    "VoiceQueueItem",
]
