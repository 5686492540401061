"""Transient records passed between pipeline steps within one call.

None of these outlive a ``normalize`` call. ``ExtractionContext`` is the
in-memory carrier for everything earlier steps learned; later steps read
from it instead of from text the pipeline wrote.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from order_normalizer.models import FeeKind, FeeSource, OrderMethod, RawFeeLine, SignalSource


@dataclass(frozen=True)
class MetadataScan:
    order_method_raw: str | None = None
    time_raw: str | None = None
    date_raw: str | None = None
    diagnostics: tuple[str, ...] = ()


@dataclass(frozen=True)
class FeeClassification:
    kind: FeeKind
    amount: Decimal
    line: RawFeeLine


@dataclass(frozen=True)
class FeeScan:
    delivery_fee: Decimal | None = None
    tip: Decimal | None = None
    delivery_fee_line: RawFeeLine | None = None
    tip_line: RawFeeLine | None = None
    other_lines: tuple[RawFeeLine, ...] = ()
    # Later lines of an already-claimed kind, keyed by the kind they matched
    duplicate_lines: tuple[tuple[FeeKind, RawFeeLine], ...] = ()
    classifications: tuple[FeeClassification, ...] = ()


@dataclass(frozen=True)
class NoteExtraction:
    # Annotation pass (in-memory diagnostics)
    annotation_tip: Decimal | None = None
    annotation_delivery_fee: Decimal | None = None
    annotation_time: str | None = None
    annotation_pickup: bool = False
    # Natural-language pass (customer note)
    pickup_keyword: str | None = None
    delivery_keyword: str | None = None
    asap: bool = False
    time_window: str | None = None
    tip: Decimal | None = None
    delivery_fee: Decimal | None = None

    @property
    def explicit_pickup(self) -> bool:
        return bool(self.pickup_keyword) or self.annotation_pickup

    @property
    def asap_pickup(self) -> bool:
        """ASAP reads as pickup only when the note names no delivery."""
        return self.asap and not self.delivery_keyword


@dataclass(frozen=True)
class DeliverySignal:
    method: OrderMethod = OrderMethod.UNKNOWN
    source: SignalSource = SignalSource.FALLBACK
    time_window: str | None = None


@dataclass(frozen=True)
class ResolvedFees:
    delivery_fee: Decimal | None = None
    delivery_fee_source: FeeSource | None = None
    tip: Decimal | None = None
    tip_source: FeeSource | None = None


@dataclass
class ExtractionContext:
    order_id: str
    note: str = ""
    metadata: MetadataScan = field(default_factory=MetadataScan)
    fees: FeeScan = field(default_factory=FeeScan)
    extraction: NoteExtraction = field(default_factory=NoteExtraction)
    signal: DeliverySignal = field(default_factory=DeliverySignal)
    resolved: ResolvedFees = field(default_factory=ResolvedFees)
    failed_steps: list[str] = field(default_factory=list)
