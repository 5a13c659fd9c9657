# core/models.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class State(str, Enum):
    GREETING = "greeting"
    JOB_SELECTION = "job_selection"
    SCOPING = "scoping"
    CHECKLIST = "checklist"
    PRODUCTS = "products"
    LABOR = "labor"
    MARKUP = "markup"
    REVIEW = "review"
    DONE = "done"
    CLARIFY = "clarify"  # recovery state, remembers previous_state


# -------------------------------------------------------------------
# Wire models
# Client payloads use camelCase. Tradecraft docs keep the column names
# of the tradecraft_docs table (snake_case).
# -------------------------------------------------------------------
class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ScopingQuestion(WireModel):
    id: str
    question: str
    quick_replies: List[str] = Field(default_factory=list)
    store_as: Optional[str] = None


class ChecklistItem(WireModel):
    category: str
    name: str
    search_terms: List[str] = Field(default_factory=list)
    default_qty: float = 1
    unit: str = "ea"
    required: bool = False
    notes: Optional[str] = None


class MaterialsChecklist(WireModel):
    items: List[ChecklistItem] = Field(default_factory=list)


class TradecraftDoc(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content: str = ""
    job_type: str
    trade: Optional[str] = None
    scoping_questions: Optional[List[ScopingQuestion]] = None
    materials_checklist: Optional[MaterialsChecklist] = None


class QuoteItem(WireModel):
    product_id: str
    name: str
    unit_price: float
    qty: float
    unit: Optional[str] = None


class Product(WireModel):
    """A catalog candidate offered to the user in the products step."""

    id: str
    name: str
    price: float
    unit: str = "ea"
    suggested_qty: float = 1


class ProductSelection(WireModel):
    id: str
    name: str
    price: float
    unit: str = "ea"
    qty: float = 1


class Message(WireModel):
    role: Literal["user", "assistant"]
    content: str


class DisplayData(WireModel):
    type: Literal["checklist", "products", "added", "summary"]
    checklist: Optional[List[ChecklistItem]] = None
    products: Optional[List[Product]] = None
    added_items: Optional[List[Dict[str, Any]]] = None
    summary: Optional[Dict[str, Any]] = None


class UserSettings(WireModel):
    default_labor_rate: Optional[float] = None
    default_markup_percent: Optional[float] = None


class Context(WireModel):
    """
    Everything that has to survive between turns.

    The caller owns it: it is returned on every response and sent back
    verbatim on the next request. Transitions never mutate a Context, they
    build a new one with model_copy(update=...).
    """

    # Quote data
    quote_items: List[QuoteItem] = Field(default_factory=list)
    quote_name: Optional[str] = None
    client_name: Optional[str] = None
    labor_hours: Optional[float] = None
    labor_rate: Optional[float] = None
    markup_percent: Optional[float] = None

    # Tradecraft / scoping
    tradecraft: Optional[TradecraftDoc] = None
    scoping_questions: Optional[List[ScopingQuestion]] = None
    current_question_index: int = 0
    scoping_answers: Dict[str, str] = Field(default_factory=dict)

    # Checklist + enrichment
    pending_checklist: Optional[List[ChecklistItem]] = None
    confirmed_categories: Optional[List[str]] = None
    pending_products: Optional[List[Product]] = None

    # Clarify bookkeeping
    previous_state: Optional[State] = None
    clarify_attempts: int = 0

    messages: List[Message] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_initial_context() -> Context:
    return Context()


class AgentResponse(BaseModel):
    """What dispatch hands back to the HTTP layer."""

    message: str
    quick_replies: List[str] = Field(default_factory=list)
    display: Optional[DisplayData] = None
    context: Context
    state: State
    is_complete: bool = False
