"""
Session module for ShareBill
Owns the session state and moves it through idle -> analyzing -> splitting <-> editing
"""

import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, List, Optional

from assignments import AssignmentManager, empty_assignments
from bill_splitter import compute_breakdown
from config import DEBUG, DEFAULT_CURRENCY, PROTECT_OWNER
from data_models import Breakdown, Friend, Item, Phase, ReceiptTotals, SessionState
from errors import AnalysisError, EditError, StateError, ValidationError
from image_editor import ImageEditService
from receipt_analysis import Payload, ReceiptAnalysisService, parse_analysis
from roster import RosterManager, default_roster

ANALYSIS_FAILED = "Could not read the receipt clearly. Please try again."
ANALYSIS_TIMED_OUT = "Reading the receipt took too long. Please try again."
EDIT_FAILED = "Image generation failed."
EDIT_TIMED_OUT = "The image edit took too long. Please try again."


def _call_with_timeout(func: Callable, timeout: Optional[float], *args):
    """Run an external call, giving up after `timeout` seconds.

    The call itself keeps running in its worker thread; only its result is abandoned.
    """
    if not timeout:
        return func(*args)

    executor = ThreadPoolExecutor(max_workers=1)
    try:
        return executor.submit(func, *args).result(timeout=timeout)
    finally:
        executor.shutdown(wait=False)


class BillSession:
    """A single bill-splitting session.

    Every external request gets a ticket. Results are applied only while the
    ticket is still current and the session is in the matching phase, so a
    result that lands after a reset is dropped instead of corrupting the new
    session.
    """

    def __init__(self, protect_owner: bool = PROTECT_OWNER, debug: bool = DEBUG):
        self.state = SessionState(friends=default_roster())
        self.roster = RosterManager(self.state, protect_owner=protect_owner)
        self.assignments = AssignmentManager(self.state, roster=self.roster)
        self.debug = debug
        self._lock = threading.RLock()
        self._ticket = 0

    def _log(self, message: str):
        if self.debug:
            print(message)

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def last_error(self) -> Optional[str]:
        return self.state.last_error

    @property
    def friends(self) -> List[Friend]:
        with self._lock:
            return list(self.state.friends)

    @property
    def items(self) -> List[Item]:
        with self._lock:
            return list(self.state.items)

    @property
    def currency(self) -> str:
        return self.state.totals.currency if self.state.totals else DEFAULT_CURRENCY

    def _enter(self, phase: Phase):
        self._log(f"  ↪ {self.state.phase.value} → {phase.value}")
        self.state.phase = phase

    def _is_current(self, ticket: int, phase: Phase) -> bool:
        if ticket != self._ticket or self.state.phase is not phase:
            self._log(f"  ⚠ Dropping stale result for request #{ticket}")
            return False
        return True

    def _require_phase(self, *phases: Phase):
        if self.state.phase not in phases:
            raise StateError(f"Not available while the session is {self.state.phase.value}")

    def _discard_receipt(self):
        self.state.items = ()
        self.state.totals = None
        self.state.assignments = {}
        self.state.image = None
        self.state.edited_image = None

    # Receipt analysis

    def begin_analysis(self, image_bytes: bytes) -> int:
        """Mark an analysis request as outstanding and return its ticket"""
        with self._lock:
            if self.state.phase is Phase.ANALYZING:
                raise StateError("A receipt is already being analyzed")
            self._require_phase(Phase.IDLE, Phase.SPLITTING)
            if not image_bytes:
                raise ValidationError("No receipt image was provided")

            self._ticket += 1
            self.state.image = bytes(image_bytes)
            self.state.edited_image = None
            self.state.last_error = None
            self._enter(Phase.ANALYZING)
            return self._ticket

    def complete_analysis(self, ticket: int, payload: Payload) -> bool:
        """Replace the item batch with a fresh analysis; returns False if it was not applied"""
        with self._lock:
            if not self._is_current(ticket, Phase.ANALYZING):
                return False
            try:
                analysis = parse_analysis(payload)
            except AnalysisError as e:
                self.fail_analysis(ticket, str(e) or ANALYSIS_FAILED)
                return False

            self.state.items = analysis.items
            self.state.totals = analysis.totals
            self.state.assignments = empty_assignments(analysis.items)
            self._enter(Phase.SPLITTING)
            self._log(f"  ✓ Loaded {len(analysis.items)} items")
            return True

    def fail_analysis(self, ticket: int, message: str) -> bool:
        with self._lock:
            if not self._is_current(ticket, Phase.ANALYZING):
                return False
            self._discard_receipt()
            self.state.last_error = message
            self._enter(Phase.IDLE)
            return True

    def run_analysis(self, service: ReceiptAnalysisService, image_bytes: bytes,
                     timeout: Optional[float] = None) -> bool:
        """Analyze a receipt photo; failures end up in `last_error`"""
        ticket = self.begin_analysis(image_bytes)
        try:
            payload = _call_with_timeout(service.analyze, timeout, image_bytes)
        except FutureTimeout:
            self.fail_analysis(ticket, ANALYSIS_TIMED_OUT)
            return False
        except AnalysisError as e:
            self.fail_analysis(ticket, str(e) or ANALYSIS_FAILED)
            return False
        except Exception as e:
            self._log(f"  ❌ Analysis service error: {e!r}")
            self.fail_analysis(ticket, ANALYSIS_FAILED)
            return False
        return self.complete_analysis(ticket, payload)

    # Image editing

    def begin_edit(self, instruction: str) -> int:
        with self._lock:
            if self.state.phase is Phase.EDITING:
                raise StateError("An image edit is already in progress")
            self._require_phase(Phase.SPLITTING)
            if not isinstance(instruction, str) or not instruction.strip():
                raise ValidationError("Describe the edit you want")

            self._ticket += 1
            self.state.last_error = None
            self._enter(Phase.EDITING)
            return self._ticket

    def complete_edit(self, ticket: int, image_bytes: Optional[bytes]) -> bool:
        with self._lock:
            if not self._is_current(ticket, Phase.EDITING):
                return False
            if not image_bytes:
                self.fail_edit(ticket, EDIT_FAILED)
                return False
            self.state.edited_image = bytes(image_bytes)
            self._enter(Phase.SPLITTING)
            return True

    def fail_edit(self, ticket: int, message: str) -> bool:
        with self._lock:
            if not self._is_current(ticket, Phase.EDITING):
                return False
            self.state.last_error = message
            self._enter(Phase.SPLITTING)
            return True

    def run_edit(self, service: ImageEditService, instruction: str,
                 timeout: Optional[float] = None) -> bool:
        """Edit the original receipt photo; the original is always kept"""
        ticket = self.begin_edit(instruction)
        source = self.state.image
        try:
            edited = _call_with_timeout(service.edit, timeout, source, instruction.strip())
        except FutureTimeout:
            self.fail_edit(ticket, EDIT_TIMED_OUT)
            return False
        except EditError as e:
            self.fail_edit(ticket, str(e) or EDIT_FAILED)
            return False
        except Exception as e:
            self._log(f"  ❌ Edit service error: {e!r}")
            self.fail_edit(ticket, EDIT_FAILED)
            return False
        return self.complete_edit(ticket, edited)

    def reset(self):
        """Back to idle with an empty receipt and only the owner in the roster"""
        with self._lock:
            self._ticket += 1
            self._discard_receipt()
            self.state.friends = default_roster()
            self.state.last_error = None
            self._enter(Phase.IDLE)

    def clear_error(self):
        with self._lock:
            self.state.last_error = None

    # Roster and assignments

    def add_friend(self, name: str) -> Friend:
        with self._lock:
            self._require_phase(Phase.IDLE, Phase.SPLITTING, Phase.EDITING)
            return self.roster.add_friend(name)

    def remove_friend(self, friend_id: str) -> None:
        with self._lock:
            self._require_phase(Phase.IDLE, Phase.SPLITTING, Phase.EDITING)
            self.roster.remove_friend(friend_id)

    def toggle_assignment(self, item_id: str, friend_id: str) -> bool:
        with self._lock:
            self._require_phase(Phase.SPLITTING, Phase.EDITING)
            return self.assignments.toggle_assignment(item_id, friend_id)

    def assign_to_everyone(self, item_id: str) -> None:
        with self._lock:
            self._require_phase(Phase.SPLITTING, Phase.EDITING)
            self.assignments.assign_to_everyone(item_id)

    def clear_item(self, item_id: str) -> None:
        with self._lock:
            self._require_phase(Phase.SPLITTING, Phase.EDITING)
            self.assignments.clear_item(item_id)

    def breakdown(self) -> Breakdown:
        """Recomputed from scratch on every call"""
        with self._lock:
            totals = self.state.totals or ReceiptTotals(currency=DEFAULT_CURRENCY)
            return compute_breakdown(self.state.items, totals, self.state.friends,
                                     self.state.assignments)
