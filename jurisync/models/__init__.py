"""
Data Models
Dataclasses for all entities. These are pure Python objects, no HTTP or file logic.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional


# =============================================================================
# VOCABULARY
# =============================================================================

STATUS_ACTIVE = 'active'
STATUS_EXPIRING_SOON = 'expiring_soon'
STATUS_EXPIRED = 'expired'
STATUS_DRAFT = 'draft'
STATUS_ARCHIVED = 'archived'

# Display order for every status-keyed output
STATUSES = (STATUS_ACTIVE, STATUS_EXPIRING_SOON, STATUS_EXPIRED, STATUS_DRAFT, STATUS_ARCHIVED)

PRIORITIES = ('low', 'medium', 'high', 'critical')

STATUS_COLORS = {
    STATUS_ACTIVE: '#22c55e',
    STATUS_EXPIRING_SOON: '#eab308',
    STATUS_EXPIRED: '#ef4444',
    STATUS_DRAFT: '#6b7280',
    STATUS_ARCHIVED: '#94a3b8',
}

STATUS_LABELS = {
    STATUS_ACTIVE: 'Active',
    STATUS_EXPIRING_SOON: 'Expiring soon',
    STATUS_EXPIRED: 'Expired',
    STATUS_DRAFT: 'Draft',
    STATUS_ARCHIVED: 'Archived',
}

PRIORITY_COLORS = {
    'low': '#10B981',
    'medium': '#3B82F6',
    'high': '#F97316',
    'critical': '#EF4444',
}

FOLDER_COLORS = (
    '#3B82F6', '#10B981', '#F59E0B', '#EF4444', '#8B5CF6',
    '#F97316', '#EC4899', '#06B6D4', '#84CC16', '#6366F1',
)


# =============================================================================
# CONTRACT ENTITIES
# =============================================================================

@dataclass
class ContractComment:
    """Comment left on a contract"""
    id: Optional[str] = None
    contract_id: Optional[str] = None
    author: Optional[str] = None
    author_id: Optional[str] = None
    content: str = ''
    created_at: Optional[datetime] = None
    edited_at: Optional[datetime] = None
    is_private: bool = False
    mentions: List[str] = field(default_factory=list)


@dataclass
class ContractHistoryEntry:
    """Audit trail entry"""
    id: Optional[str] = None
    contract_id: Optional[str] = None
    action: str = ''
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    author: Optional[str] = None
    author_id: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass
class ContractAttachment:
    id: Optional[str] = None
    contract_id: Optional[str] = None
    name: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: int = 0
    uploaded_by: Optional[str] = None
    uploaded_at: Optional[datetime] = None


@dataclass
class ContractNotification:
    """Scheduled reminder attached to a contract"""
    id: Optional[str] = None
    contract_id: Optional[str] = None
    type: str = 'expiry_reminder'
    message: Optional[str] = None
    recipients: List[str] = field(default_factory=list)
    scheduled_for: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    is_active: bool = True


@dataclass
class Contract:
    """
    Contract entity as held by the client (read-through copy of the server record).
    `status` is the stored authoring hint; the effective status comes from
    jurisync.engine.classifier.classify().
    """
    id: Optional[str] = None
    name: str = ''
    description: Optional[str] = None
    contracting_company: Optional[str] = None
    contracted_party: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    value: Optional[Decimal] = Decimal('0')
    internal_responsible: Optional[str] = None
    responsible_email: Optional[str] = None
    status: str = STATUS_ACTIVE
    priority: str = 'medium'
    folder_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created_by: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    is_archived: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    comments: List[ContractComment] = field(default_factory=list)
    history: List[ContractHistoryEntry] = field(default_factory=list)
    attachments: List[ContractAttachment] = field(default_factory=list)
    notifications: List[ContractNotification] = field(default_factory=list)


@dataclass
class Folder:
    """User-defined grouping container for contracts"""
    id: Optional[str] = None
    name: str = ''
    description: Optional[str] = None
    color: str = FOLDER_COLORS[0]
    parent_id: Optional[str] = None
    path: List[str] = field(default_factory=list)
    type: str = 'custom'
    contract_count: int = 0
    is_active: bool = True


# =============================================================================
# QUERY OBJECTS
# =============================================================================

@dataclass
class ContractFilters:
    """Sparse filter query. None on a field means no constraint on that dimension."""
    status: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    responsible: Optional[str] = None
    contracting_company: Optional[str] = None
    folder_id: Optional[str] = None
    tags: Optional[List[str]] = None
    priority: Optional[str] = None
    created_by: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            getattr(self, name) in (None, '', [])
            for name in self.__dataclass_fields__
        )


@dataclass
class ExportOptions:
    format: str = 'csv'
    include_active: bool = True
    include_expiring_soon: bool = True
    include_expired: bool = True
    include_draft: bool = True
    include_archived: bool = True
    folder_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


# =============================================================================
# DERIVED VALUES (recomputed per call, never persisted)
# =============================================================================

@dataclass(frozen=True)
class DashboardStats:
    total_contracts: int = 0
    active_contracts: int = 0
    expiring_soon_contracts: int = 0
    expired_contracts: int = 0
    draft_contracts: int = 0
    archived_contracts: int = 0
    invalid_contracts: int = 0
    total_value: Decimal = Decimal('0')
    monthly_value: Decimal = Decimal('0')
    average_contract_value: Decimal = Decimal('0')
    contracts_by_folder: Dict[str, int] = field(default_factory=dict)
    contracts_by_responsible: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class StatusSlice:
    status: str
    label: str
    count: int
    color: str


@dataclass(frozen=True)
class MonthlyPoint:
    month: str  # YYYY-MM
    label: str  # e.g. 'Oct 2026'
    contracts: int = 0
    value: Decimal = Decimal('0')


@dataclass(frozen=True)
class FinancialPoint:
    month: str
    label: str
    value: Decimal = Decimal('0')


@dataclass(frozen=True)
class FolderSlice:
    folder: str
    count: int
    color: str


@dataclass(frozen=True)
class PrioritySlice:
    priority: str
    count: int
    color: str


@dataclass(frozen=True)
class ChartData:
    contracts_by_status: tuple = ()
    monthly_evolution: tuple = ()
    financial_by_month: tuple = ()
    contracts_by_folder: tuple = ()
    contracts_by_priority: tuple = ()


@dataclass(frozen=True)
class EmailNotification:
    to: str
    subject: str
    body: str
    contract_id: Optional[str]
    type: str
    days_until_expiry: int
