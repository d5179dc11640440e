"""Client application state container.

Holds the canonical in-memory copy of the four client collections during a
session. Every change marks its collection dirty; dirty collections are
written back through a per-collection ``CollectionSaver`` so that at most
one save per collection is in flight and the last *submitted* snapshot is
the one that ends up stored.
"""

import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

import msgspec
from loguru import logger

from archive.config import CLIENT_COLLECTIONS
from archive.error_handling import PayloadError
from archive.reports import (
    DashboardStats,
    ReportSummary,
    dashboard_stats,
    monthly_counts,
    report_summary,
)
from archive.models import (
    AuditLogEntry,
    Contract,
    ContractTypeDefinition,
    SystemSettings,
    User,
    from_documents,
    to_documents,
)
from client.auth import INITIAL_USERS, authenticate, is_valid_password
from client.gateway import ERROR, SAVED, PersistenceGateway
from client.search import ContractFilters, filter_contracts


Listener = Callable[[str, Any], None]

COLLECTION_TYPES = {
    "contracts": Contract,
    "users": User,
    "audit_log": AuditLogEntry,
    "contract_types": ContractTypeDefinition,
}

UNKNOWN_USER = "غير معروف"


def default_collections() -> Dict[str, list]:
    """Values used when the server has nothing (or cannot be reached)."""
    return {
        "contracts": [],
        "users": list(INITIAL_USERS),
        "audit_log": [],
        "contract_types": [],
    }


def _now_ms() -> int:
    return int(time.time() * 1000)


class CollectionSaver:
    """Serializes saves of one collection.

    ``submit`` never blocks: it records the latest snapshot and starts a
    drain task only when none is running. The drain task keeps saving until
    no newer snapshot is pending, so overlapping saves cannot land out of
    order.
    """

    def __init__(
        self,
        name: str,
        gateway: PersistenceGateway,
        executor: Executor,
        on_status: Callable[[str], None]
    ):
        self.name = name
        self.gateway = gateway
        self.executor = executor
        self.on_status = on_status
        self._lock = threading.Lock()
        self._pending: Optional[list] = None
        self._in_flight = False
        self._idle = threading.Event()
        self._idle.set()

    def submit(self, snapshot: list) -> None:
        with self._lock:
            self._pending = snapshot
            if self._in_flight:
                return
            self._in_flight = True
            self._idle.clear()
        self.executor.submit(self._drain)

    def _drain(self) -> None:
        while True:
            with self._lock:
                snapshot = self._pending
                self._pending = None
                if snapshot is None:
                    self._in_flight = False
                    self._idle.set()
                    return
            self.gateway.save(self.name, snapshot, self.on_status)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no save is running or pending."""
        return self._idle.wait(timeout)

    @property
    def busy(self) -> bool:
        return not self._idle.is_set()


class AppState:
    """Explicit store for the client's collections.

    Persistence starts only after ``boot`` has loaded every collection, so
    the defaults used during loading never overwrite stored data.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        autosave: bool = True,
        executor: Optional[Executor] = None
    ):
        """Initialize an empty, not-yet-loaded state.

        Args:
            gateway: Persistence gateway used for loads and saves
            autosave: Save a collection as soon as it changes
            executor: Runs background saves (a small thread pool by default)
        """
        self.gateway = gateway
        self.autosave = autosave
        self.executor = executor or ThreadPoolExecutor(
            max_workers=len(CLIENT_COLLECTIONS), thread_name_prefix="archive-save"
        )
        self._data: Dict[str, list] = {name: [] for name in CLIENT_COLLECTIONS}
        self._dirty: Dict[str, bool] = {name: False for name in CLIENT_COLLECTIONS}
        self._listeners: List[Listener] = []
        self._status_lock = threading.Lock()
        self.save_status = SAVED
        self.loaded = False
        self.current_user: Optional[User] = None
        self._savers = {
            name: CollectionSaver(name, gateway, self.executor, self._set_save_status)
            for name in CLIENT_COLLECTIONS
        }

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_collection(self, name: str, default: list) -> list:
        data = self.gateway.load(name, default)
        if data is default:
            return list(default)
        try:
            return from_documents(data, COLLECTION_TYPES[name])
        except msgspec.ValidationError as e:
            logger.error(f"Stored {name} do not match the expected shape: {e}")
            raise PayloadError(f"Invalid stored {name}: {e}") from e

    def boot(self) -> None:
        """Load all collections in parallel, then enable persistence.

        Raises:
            PayloadError: If a stored collection cannot be decoded; the state
                stays unloaded and nothing will be saved
        """
        logger.info("Loading archive collections")
        defaults = default_collections()

        with ThreadPoolExecutor(max_workers=len(CLIENT_COLLECTIONS)) as pool:
            futures = {
                name: pool.submit(self._load_collection, name, defaults[name])
                for name in CLIENT_COLLECTIONS
            }
            loaded = {name: future.result() for name, future in futures.items()}

        self._data.update(loaded)
        self.loaded = True

        # Persist the seed users on a fresh archive
        self._schedule_save("users")
        logger.info(
            "Archive collections loaded",
            counts={name: len(items) for name, items in loaded.items()}
        )

    # ------------------------------------------------------------------
    # Store interface
    # ------------------------------------------------------------------

    def get(self, name: str) -> list:
        """Current value of a collection (treat as read-only; use ``set``)."""
        return self._data[name]

    def set(self, name: str, value: list) -> None:
        """Replace a collection, notify listeners and mark it dirty."""
        if name not in self._data:
            raise KeyError(name)
        self._data[name] = list(value)
        self._dirty[name] = True
        self._notify(name, self._data[name])
        if self.autosave and self.loaded:
            self._schedule_save(name)

    def update(self, name: str, func: Callable[[list], list]) -> None:
        """Replace a collection with ``func(current)``."""
        self.set(name, func(self._data[name]))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(name, value)``; returns an unsubscribe function.

        Listeners also receive ``("save_status", status)`` notifications.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def is_dirty(self, name: str) -> bool:
        return self._dirty[name]

    def save_dirty(self) -> List[str]:
        """Submit every dirty collection; returns their names."""
        if not self.loaded:
            return []
        names = [name for name, dirty in self._dirty.items() if dirty]
        for name in names:
            self._schedule_save(name)
        return names

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for every pending save; returns False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        for saver in self._savers.values():
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            if not saver.wait(remaining):
                return False
        return True

    def close(self) -> None:
        self.flush()
        self.executor.shutdown(wait=True)

    def _schedule_save(self, name: str) -> None:
        self._dirty[name] = False
        self._savers[name].submit(to_documents(self._data[name]))

    def _set_save_status(self, status: str) -> None:
        with self._status_lock:
            self.save_status = status
        if status == ERROR:
            logger.warning("A collection save failed; in-memory state is kept")
        self._notify("save_status", status)

    def _notify(self, name: str, value: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, value)
            except Exception as e:
                logger.error(f"State listener failed for {name}: {e}")

    # ------------------------------------------------------------------
    # Audit trail and session
    # ------------------------------------------------------------------

    def add_audit_log(self, action: str, user_name: Optional[str] = None) -> AuditLogEntry:
        """Prepend an audit entry (newest first)."""
        entries = self._data["audit_log"]
        entry = AuditLogEntry(
            id=self._next_id(entries),
            timestamp=datetime.now().strftime("%d/%m/%Y %H:%M:%S"),
            user=user_name or (self.current_user.name if self.current_user else UNKNOWN_USER),
            action=action,
        )
        self.set("audit_log", [entry, *entries])
        return entry

    def login(self, phone: str, password: str) -> Optional[User]:
        user = authenticate(self._data["users"], phone, password)
        if user is None:
            logger.info("Login rejected")
            return None
        self.current_user = user
        self.add_audit_log("تسجيل الدخول", user.name)
        return user

    def logout(self) -> None:
        if self.current_user is not None:
            self.add_audit_log("تسجيل الخروج")
        self.current_user = None

    @staticmethod
    def _next_id(items: list) -> int:
        """Millisecond timestamp, bumped past existing ids when needed."""
        existing = [item.id for item in items if getattr(item, "id", None) is not None]
        candidate = _now_ms()
        if existing and candidate <= max(existing):
            candidate = max(existing) + 1
        return candidate

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def add_contract(self, contract: Contract) -> Contract:
        """Store a new contract at the top of the list.

        A contract without its own attachment inherits its type's template.
        """
        contracts = self._data["contracts"]
        changes: Dict[str, Any] = {"id": self._next_id(contracts)}
        if contract.file is None:
            definition = next(
                (t for t in self._data["contract_types"] if t.name == contract.type), None
            )
            if definition is not None and definition.file is not None:
                changes["file"] = definition.file

        contract = msgspec.structs.replace(contract, **changes)
        self.set("contracts", [contract, *contracts])
        self.add_audit_log(f"إضافة عقد جديد: {contract.title}")
        return contract

    def update_contract(self, contract: Contract) -> None:
        self.set(
            "contracts",
            [contract if c.id == contract.id else c for c in self._data["contracts"]],
        )
        self.add_audit_log(f"تعديل عقد: {contract.title}")

    def delete_contract(self, contract_id: int) -> bool:
        contracts = self._data["contracts"]
        target = next((c for c in contracts if c.id == contract_id), None)
        if target is None:
            return False
        self.set("contracts", [c for c in contracts if c.id != contract_id])
        self.add_audit_log(f"حذف عقد: {target.title}")
        return True

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def add_user(self, user: User) -> User:
        user = msgspec.structs.replace(user, id=self._next_id(self._data["users"]))
        self.set("users", [*self._data["users"], user])
        self.add_audit_log(f"إضافة مستخدم جديد: {user.name}")
        return user

    def delete_user(self, user_id: int) -> bool:
        users = self._data["users"]
        target = next((u for u in users if u.id == user_id), None)
        if target is None:
            return False
        self.set("users", [u for u in users if u.id != user_id])
        self.add_audit_log(f"حذف مستخدم: {target.name}")
        return True

    def change_password(self, new_password: str) -> bool:
        """Change the logged-in user's password (digits only)."""
        if self.current_user is None or not is_valid_password(new_password):
            return False
        user_id = self.current_user.id
        users = [
            msgspec.structs.replace(u, password=new_password) if u.id == user_id else u
            for u in self._data["users"]
        ]
        self.set("users", users)
        self.current_user = next(u for u in users if u.id == user_id)
        self.add_audit_log("تغيير كلمة سر المدير")
        return True

    # ------------------------------------------------------------------
    # Contract types and settings
    # ------------------------------------------------------------------

    def add_contract_type(self, definition: ContractTypeDefinition) -> bool:
        """Add a type; names are unique by convention, duplicates are refused."""
        name = definition.name.strip()
        if not name or any(t.name == name for t in self._data["contract_types"]):
            return False
        definition = msgspec.structs.replace(definition, name=name)
        self.set("contract_types", [*self._data["contract_types"], definition])
        self.add_audit_log(f"إضافة نوع عقد جديد: {name}")
        return True

    def delete_contract_type(self, name: str) -> bool:
        types = self._data["contract_types"]
        if not any(t.name == name for t in types):
            return False
        self.set("contract_types", [t for t in types if t.name != name])
        self.add_audit_log(f"حذف نوع عقد: {name}")
        return True

    def save_settings(self, settings: SystemSettings) -> bool:
        """Write the single settings row directly (it is not kept in memory)."""
        saved = self.gateway.save("system_settings", to_documents([settings]))
        if saved:
            self.add_audit_log("تحديث إعدادات الترخيص")
        return saved

    # ------------------------------------------------------------------
    # Dashboard and reports
    # ------------------------------------------------------------------

    def dashboard(self, today: Optional[date] = None) -> DashboardStats:
        return dashboard_stats(self._data["contracts"], today)

    def monthly(self) -> Dict[str, int]:
        """Contracts per creation month (``YYYY-MM``), oldest first."""
        return monthly_counts(self._data["contracts"])

    def report(self) -> ReportSummary:
        return report_summary(self._data["contracts"], self._data["contract_types"])

    def filtered_contracts(self, filters: Optional[ContractFilters] = None) -> List[Contract]:
        return filter_contracts(self._data["contracts"], filters)

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def download_backup(self) -> str:
        backup = self.gateway.create_backup()
        self.add_audit_log("تنزيل نسخة احتياطية كاملة")
        return backup
