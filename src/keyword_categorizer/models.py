from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from keyword_categorizer.domain.keywords import normalize_keywords


class TransactionType:
    EXPENSE = "Expense"
    INCOME = "Income"
    TRANSFER = "Transfer"


class Transaction(BaseModel):
    description: str
    amount: float
    date: datetime
    currency: str = "ILS"
    id: Optional[str] = None
    memo: Optional[str] = None
    translated_description: Optional[str] = None
    type: Optional[str] = None  # Expense / Income / Transfer once known
    account_name: Optional[str] = None
    identifier: Optional[str] = None  # scraper reference shared by installments
    charged_account: Optional[str] = None
    processed_date: Optional[datetime] = None
    raw_data: dict[str, Any] = Field(default_factory=dict)


class Category(BaseModel):
    name: str
    id: Optional[str] = None
    type: Optional[str] = None
    parent: Optional[str] = None  # set for subcategories
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Any) -> list[str]:
        return normalize_keywords(value)


class CategorizationResult(BaseModel):
    category: Category
    confidence: float  # 0.0 to 1.0
    source: str  # "memory_exact", "memory_fuzzy", "keyword", "tfidf"
    reasoning: Optional[str] = None
    matched_field: Optional[str] = None
