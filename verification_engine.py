import logging
import re
from typing import Callable, Iterable, List, Optional

from config import (
    CUE_ERROR_OR_INFO,
    CUE_SUCCESS,
    CUE_SUCCESS_EMPHASIZED,
    HIGHLIGHT_REASON_KEYWORDS,
    Settings,
)
from matching.index import MatchIndex, normalize_awb
from matching.scheduler import PolledScheduler, TaskHandle
from models import Notification, ResultKind, ShipmentRecord, VerificationResult

logger = logging.getLogger(__name__)

LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def should_highlight_reason(reason: Optional[str]) -> bool:
    if not reason:
        return False
    lowered = reason.lower()
    return any(keyword in lowered for keyword in HIGHLIGHT_REASON_KEYWORDS)


def should_highlight_qty(qty: Optional[str]) -> bool:
    """Quantity above one means the packer must count items, not just scan"""
    if not qty:
        return False
    match = LEADING_INT.match(qty)
    return bool(match) and int(match.group(1)) > 1


def needs_highlight(record: Optional[ShipmentRecord]) -> bool:
    if record is None:
        return False
    return should_highlight_reason(record.return_reason) or should_highlight_qty(record.qty)


class VerificationEngine:
    """Tracks the received state of loaded return shipments as AWBs are scanned"""

    def __init__(self, scheduler: Optional[PolledScheduler] = None, settings: Optional[Settings] = None,
                 notify: Optional[Callable[[Notification], None]] = None,
                 play_cue: Optional[Callable[[str], None]] = None):
        self.scheduler = scheduler or PolledScheduler()
        self.settings = settings or Settings()
        self.notify = notify
        self.play_cue = play_cue

        self.records: List[ShipmentRecord] = []
        self.index = MatchIndex()
        # Bumped on every list replacement so stale callbacks can bail out
        self.generation = 0

        self.input_value = ''
        self.status: Optional[ResultKind] = None
        self.message: Optional[str] = None
        self.last_result: Optional[VerificationResult] = None
        self.is_verifying = False

        self._debounce: Optional[TaskHandle] = None
        self._auto_clear: Optional[TaskHandle] = None
        self._listeners: List[Callable[[VerificationResult], None]] = []

    # ------------------------------------------------------------------
    # Record list lifecycle
    # ------------------------------------------------------------------

    def load(self, records: List[ShipmentRecord]) -> None:
        """Replace the record list. Pending timers are cancelled before anything else."""
        self._cancel_timers()
        self.generation += 1
        self.records = records
        self.index = MatchIndex(records)
        self._reset_input()
        logger.info("Loaded %d records (%d distinct AWBs, %d prefix keys)",
                    len(records), len(self.index), len(self.index.prefix))

    def clear(self) -> None:
        self.load([])

    def teardown(self) -> None:
        self._cancel_timers()
        self._listeners.clear()

    def subscribe(self, listener: Callable[[VerificationResult], None]) -> None:
        self._listeners.append(listener)

    @property
    def has_records(self) -> bool:
        return bool(self.records)

    @property
    def received_count(self) -> int:
        return sum(1 for r in self.records if r.is_done)

    @property
    def pending_count(self) -> int:
        return len(self.records) - self.received_count

    # ------------------------------------------------------------------
    # Operator input
    # ------------------------------------------------------------------

    def on_input(self, raw: str) -> None:
        """Handle one keystroke worth of input"""
        self.input_value = raw or ''
        self.status = None
        self.message = None
        self._cancel_timers()

        value = self.input_value.strip()
        if len(value) < self.settings.min_awb_length or not self.records:
            return

        generation = self.generation
        self.is_verifying = True
        self._debounce = self.scheduler.call_later(
            self.settings.debounce_ms,
            lambda: self._on_debounce(value, generation),
            name='verify-debounce',
        )

    def flush(self) -> Optional[VerificationResult]:
        """Verify the pending input now (Enter key or scanner suffix)"""
        handle = self._debounce
        if self.scheduler.fire_now(handle):
            return self.last_result
        return None

    def _on_debounce(self, value: str, generation: int) -> None:
        self._debounce = None
        self.is_verifying = False
        if generation != self.generation:
            logger.debug("Dropping verification of %s for a replaced record list", value)
            return
        self.verify(value)

    def verify(self, value: str) -> VerificationResult:
        """Match ``value`` against the loaded records and flip Pending matches to Done"""
        query = value.strip()
        positions, via_prefix = self.index.match(query)

        if not positions:
            result = VerificationResult(
                kind=ResultKind.ERROR,
                query=query,
                message=f"AWB {query} not found in the uploaded list or could not be matched.",
            )
            self._finish(result)
            self._schedule_auto_clear(query)
            self._cue(CUE_ERROR_OR_INFO)
            return result

        matches = [self.records[p] for p in positions]
        flipped = [record for record in matches if record.mark_done()]
        first = flipped[0] if flipped else matches[0]
        shown = query if not via_prefix else f"{query} (matched {first.awb})"

        if flipped:
            highlight = needs_highlight(first)
            result = VerificationResult(
                kind=ResultKind.SUCCESS,
                query=query,
                message=f"AWB {shown} marked as received ({len(flipped)} of {len(matches)} item(s) updated).",
                matched=positions,
                flipped=len(flipped),
                total_matched=len(matches),
                record=first,
                highlight=highlight,
                matched_via_prefix=via_prefix,
            )
            self._finish(result)
            self.input_value = ''
            self._toast_success(result)
            self._cue(CUE_SUCCESS_EMPHASIZED if highlight else CUE_SUCCESS)
            logger.info("AWB %s verified: %d of %d matched item(s) flipped", query, len(flipped), len(matches))
            return result

        result = VerificationResult(
            kind=ResultKind.INFO,
            query=query,
            message=f"AWB {shown} was already marked as received.",
            matched=positions,
            total_matched=len(matches),
            record=first,
            highlight=needs_highlight(first),
            matched_via_prefix=via_prefix,
        )
        self._finish(result)
        self._schedule_auto_clear(query)
        self._cue(CUE_ERROR_OR_INFO)
        return result

    def mark_selected(self, awbs: Iterable[str]) -> int:
        """Bulk flip of Pending records whose AWB is in ``awbs``"""
        keys = {normalize_awb(awb) for awb in awbs}
        keys.discard('')
        flipped = sum(1 for record in self.records if record.normalized_awb in keys and record.mark_done())
        logger.info("Marked %d record(s) as Done from a selection of %d AWB(s)", flipped, len(keys))
        return flipped

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish(self, result: VerificationResult) -> None:
        self.last_result = result
        self.status = result.kind
        self.message = result.message
        for listener in list(self._listeners):
            listener(result)

    def _schedule_auto_clear(self, query: str) -> None:
        if self._auto_clear is not None:
            self._auto_clear.cancel()
        generation = self.generation
        self._auto_clear = self.scheduler.call_later(
            self.settings.auto_clear_ms,
            lambda: self._on_auto_clear(query, generation),
            name='auto-clear',
        )

    def _on_auto_clear(self, query: str, generation: int) -> None:
        self._auto_clear = None
        if generation != self.generation:
            return
        # Only clear what the operator left untouched
        if self.input_value.strip() != query:
            return
        self._reset_input()

    def _reset_input(self) -> None:
        self.input_value = ''
        self.status = None
        self.message = None
        self.is_verifying = False

    def _cancel_timers(self) -> None:
        for handle in (self._debounce, self._auto_clear):
            if handle is not None:
                handle.cancel()
        self._debounce = None
        self._auto_clear = None
        self.is_verifying = False

    def _toast_success(self, result: VerificationResult) -> None:
        if self.notify is None or result.record is None:
            return
        record = result.record
        lines = [
            f"Courier: {record.courier_partner}",
            f"Return Type: {record.return_type.value}",
            f"Reason: {record.return_reason}",
            f"Product: SKU: {record.sku} | Category: {record.category} | Qty: {record.qty} | Size: {record.size}",
        ]
        if result.total_matched > 1:
            lines.append(f"Updated {result.flipped} of {result.total_matched} items sharing this AWB")
        self.notify(Notification(
            title=f"AWB {result.query} Verified",
            body="\n".join(lines),
            duration_ms=self.settings.success_toast_ms,
            emphasized=result.highlight,
        ))

    def _cue(self, cue: str) -> None:
        if self.play_cue is not None:
            self.play_cue(cue)
