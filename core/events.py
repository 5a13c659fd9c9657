# core/events.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, List, Tuple, Type, Union

from core.models import Product, ProductSelection, TradecraftDoc


class EventKind(str, Enum):
    START = "START"
    SELECT_JOB = "SELECT_JOB"
    ANSWER_SCOPING = "ANSWER_SCOPING"
    CONFIRM_CHECKLIST = "CONFIRM_CHECKLIST"
    SKIP_CHECKLIST = "SKIP_CHECKLIST"
    ADD_PRODUCTS = "ADD_PRODUCTS"
    SKIP_PRODUCTS = "SKIP_PRODUCTS"
    SET_LABOR = "SET_LABOR"
    SET_MARKUP = "SET_MARKUP"
    FINALIZE = "FINALIZE"
    START_NEW = "START_NEW"
    GO_BACK = "GO_BACK"
    UNCLEAR = "UNCLEAR"


# -------------------------------------------------------------------
# One frozen dataclass per variant. Each carries only what its
# transition needs.
# -------------------------------------------------------------------
@dataclass(frozen=True)
class Start:
    kind: ClassVar[EventKind] = EventKind.START


@dataclass(frozen=True)
class SelectJob:
    job_type: str
    tradecraft: TradecraftDoc
    kind: ClassVar[EventKind] = EventKind.SELECT_JOB


@dataclass(frozen=True)
class AnswerScoping:
    question_id: str
    answer: str
    kind: ClassVar[EventKind] = EventKind.ANSWER_SCOPING


@dataclass(frozen=True)
class ConfirmChecklist:
    categories: Tuple[str, ...]
    kind: ClassVar[EventKind] = EventKind.CONFIRM_CHECKLIST


@dataclass(frozen=True)
class SkipChecklist:
    kind: ClassVar[EventKind] = EventKind.SKIP_CHECKLIST


@dataclass(frozen=True)
class AddProducts:
    products: Tuple[ProductSelection, ...]
    kind: ClassVar[EventKind] = EventKind.ADD_PRODUCTS


@dataclass(frozen=True)
class SkipProducts:
    kind: ClassVar[EventKind] = EventKind.SKIP_PRODUCTS


@dataclass(frozen=True)
class SetLabor:
    hours: float
    rate: float
    kind: ClassVar[EventKind] = EventKind.SET_LABOR


@dataclass(frozen=True)
class SetMarkup:
    percent: float
    kind: ClassVar[EventKind] = EventKind.SET_MARKUP


@dataclass(frozen=True)
class Finalize:
    kind: ClassVar[EventKind] = EventKind.FINALIZE


@dataclass(frozen=True)
class StartNew:
    kind: ClassVar[EventKind] = EventKind.START_NEW


@dataclass(frozen=True)
class GoBack:
    kind: ClassVar[EventKind] = EventKind.GO_BACK


@dataclass(frozen=True)
class Unclear:
    """Input we could not map. Kept for logging, never for guessing."""

    original_input: str = ""
    kind: ClassVar[EventKind] = EventKind.UNCLEAR


Event = Union[
    Start,
    SelectJob,
    AnswerScoping,
    ConfirmChecklist,
    SkipChecklist,
    AddProducts,
    SkipProducts,
    SetLabor,
    SetMarkup,
    Finalize,
    StartNew,
    GoBack,
    Unclear,
]

EVENT_TYPES: Dict[EventKind, Type] = {
    cls.kind: cls
    for cls in (
        Start,
        SelectJob,
        AnswerScoping,
        ConfirmChecklist,
        SkipChecklist,
        AddProducts,
        SkipProducts,
        SetLabor,
        SetMarkup,
        Finalize,
        StartNew,
        GoBack,
        Unclear,
    )
}

if set(EVENT_TYPES) != set(EventKind):
    missing = sorted(k.value for k in set(EventKind) - set(EVENT_TYPES))
    raise RuntimeError(f"Event kinds without a variant: {missing}")


def selections_from_products(products: List[Product]) -> Tuple[ProductSelection, ...]:
    """Select every candidate at its suggested quantity ("add all")."""
    return tuple(
        ProductSelection(id=p.id, name=p.name, price=p.price, unit=p.unit, qty=p.suggested_qty)
        for p in products
    )
