"""
Data Models - msgspec Structs for the archive's stored documents.

Documents travel as camelCase JSON (``creationDate``, ``isArchived``...);
``rename="camel"`` maps them onto snake_case attributes. The store itself
treats documents as opaque JSON, these structs are used wherever code needs
typed access (reports, the client state container, search).
"""

from enum import Enum
from typing import List, Literal, Optional

import msgspec
from msgspec import Struct


class ContractStatus(str, Enum):
    DRAFT = "مسودة"
    FINAL = "نهائي"
    EXPIRED = "منتهي"
    CANCELED = "ملغي"


class PartyType(str, Enum):
    INDIVIDUAL = "فرد"
    COMPANY = "شركة"


class IdType(str, Enum):
    PASSPORT = "جواز سفر"
    ID_CARD = "بطاقة هوية"
    LICENSE = "رخصة"


UserRole = Literal["مدير النظام", "محرر عقود", "مساعد إداري"]
UserStatus = Literal["نشط", "غير نشط"]

ROLE_SYSTEM_ADMIN: UserRole = "مدير النظام"
ROLE_CONTRACT_EDITOR: UserRole = "محرر عقود"
ROLE_ADMIN_ASSISTANT: UserRole = "مساعد إداري"
STATUS_ACTIVE: UserStatus = "نشط"
STATUS_INACTIVE: UserStatus = "غير نشط"


class ContractFile(Struct, rename="camel"):
    """Attachment embedded in a document as base64."""
    name: str
    content: str  # base64
    type: str  # mime type


class Party(Struct, rename="camel", kw_only=True):
    """One side of a contract."""
    name: str
    type: PartyType = PartyType.INDIVIDUAL
    id_number: str = ""
    id_type: IdType = IdType.ID_CARD
    national_id: Optional[str] = None
    phone: Optional[str] = None


class Contract(Struct, rename="camel", kw_only=True):
    """Archived legal contract."""
    id: Optional[int] = None
    title: str = ""
    type: str = ""  # name of a ContractTypeDefinition
    party1: Party
    party2: Optional[Party] = None
    creation_date: str = ""
    start_date: str = ""
    end_date: Optional[str] = None
    value: float = 0
    status: ContractStatus = ContractStatus.DRAFT
    editor_name: str = ""
    keywords: List[str] = []
    notes: str = ""
    file: Optional[ContractFile] = None
    is_archived: bool = False


class User(Struct, rename="camel", kw_only=True):
    """Office user; ``phone`` doubles as the login selector."""
    id: int
    name: str
    phone: str
    password: Optional[str] = None
    role: UserRole = ROLE_CONTRACT_EDITOR
    status: UserStatus = STATUS_ACTIVE


class AuditLogEntry(Struct, rename="camel"):
    id: int
    timestamp: str
    user: str
    action: str


class ContractTypeDefinition(Struct, rename="camel"):
    name: str
    file: Optional[ContractFile] = None


class SystemSettings(Struct, rename="camel", kw_only=True):
    """Single-row office settings collection."""
    id: Optional[int] = None
    license_number: Optional[str] = None
    show_license_number: bool = True
    responsible_editor_name: Optional[str] = None
    office_title: Optional[str] = None


def to_documents(items) -> list:
    """Convert structs (or already-plain dicts) to JSON-ready builtins."""
    return [msgspec.to_builtins(item) for item in items]


def from_documents(documents: list, type_) -> list:
    """Decode plain documents into structs of ``type_``.

    Raises:
        msgspec.ValidationError: If a document does not match the struct
    """
    return msgspec.convert(documents, type=List[type_])
