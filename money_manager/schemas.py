# money_manager/schemas.py
#
# Request bodies. Responses are plain dicts built by the *_out helpers next to
# each router, the same way rows are turned into JSON everywhere else.

import datetime as dt
from typing import Annotated, List, Literal, Optional

from fastapi import Path, Query
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

# ---- ENUMS ----

Currency = Literal["USD", "EUR", "GBP", "CAD", "AUD", "JPY", "INR"]
AccountType = Literal["checking", "savings", "credit", "investment", "cash", "other"]
PaymentMethod = Literal["cash", "card", "bank_transfer", "digital_wallet", "check", "other"]
RecurringPattern = Literal["daily", "weekly", "monthly", "yearly"]
BudgetPeriod = Literal["weekly", "monthly", "yearly"]
DebtType = Literal[
    "student_loan", "credit_card", "personal_loan", "mortgage", "auto_loan", "medical", "other"
]
DebtStatus = Literal["active", "paid_off", "defaulted", "deferred"]

HexColor = Annotated[str, Field(pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$")]
Tag = Annotated[str, Field(max_length=20)]

# ---- BOUNDS ----

# SQLite INTEGER is a signed 64-bit value; amounts are stored as cents.
MAX_ROW_ID = 2**63 - 1
MAX_AMOUNT = 1_000_000_000_000
MAX_PAGE = 1_000_000

Amount = Annotated[float, Field(allow_inf_nan=False, ge=0, le=MAX_AMOUNT)]
PositiveAmount = Annotated[float, Field(allow_inf_nan=False, ge=0.01, le=MAX_AMOUNT)]
SignedAmount = Annotated[float, Field(allow_inf_nan=False, ge=-MAX_AMOUNT, le=MAX_AMOUNT)]
Percent = Annotated[float, Field(allow_inf_nan=False, ge=0, le=100)]
RowId = Annotated[int, Field(ge=1, le=MAX_ROW_ID)]

# route parameters
PathId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]
FilterId = Annotated[Optional[int], Query(ge=1, le=MAX_ROW_ID)]
Page = Annotated[int, Query(ge=1, le=MAX_PAGE)]


class _Body(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# ---- AUTH ----

class UserCreate(_Body):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)


class UserLogin(_Body):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdate(_Body):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    currency: Optional[Currency] = None
    timezone: Optional[str] = Field(default=None, min_length=1, max_length=64)


# ---- ACCOUNTS ----

class AccountCreate(_Body):
    name: str = Field(min_length=1, max_length=50)
    type: AccountType
    balance: SignedAmount = 0.0
    currency: Optional[Currency] = None
    description: Optional[str] = Field(default=None, max_length=200)
    color: Optional[HexColor] = None
    icon: Optional[str] = Field(default=None, max_length=50)


class AccountUpdate(_Body):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    type: Optional[AccountType] = None
    balance: Optional[SignedAmount] = None
    currency: Optional[Currency] = None
    description: Optional[str] = Field(default=None, max_length=200)
    color: Optional[HexColor] = None
    icon: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None


# ---- CATEGORIES ----

class CategoryCreate(_Body):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    color: Optional[HexColor] = None
    icon: Optional[str] = Field(default=None, max_length=50)
    is_default: bool = False
    parent_id: Optional[RowId] = None
    budget_limit: Optional[Amount] = None
    budget_period: Optional[BudgetPeriod] = None


class CategoryUpdate(_Body):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    color: Optional[HexColor] = None
    icon: Optional[str] = Field(default=None, max_length=50)
    is_default: Optional[bool] = None
    parent_id: Optional[RowId] = None
    budget_limit: Optional[Amount] = None
    budget_period: Optional[BudgetPeriod] = None


# ---- EXPENSES / INCOMES ----

class _EntryCreate(_Body):
    account_id: RowId
    category_id: RowId
    amount: PositiveAmount
    description: str = Field(min_length=1, max_length=200)
    date: Optional[dt.date] = None
    payment_method: PaymentMethod = "card"
    tags: List[Tag] = Field(default_factory=list)
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def pattern_required_when_recurring(self):
        if self.is_recurring and not self.recurring_pattern:
            raise ValueError("recurring_pattern is required for recurring entries")
        return self


class _EntryUpdate(_Body):
    account_id: Optional[RowId] = None
    category_id: Optional[RowId] = None
    amount: Optional[PositiveAmount] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[dt.date] = None
    payment_method: Optional[PaymentMethod] = None
    tags: Optional[List[Tag]] = None
    is_recurring: Optional[bool] = None
    recurring_pattern: Optional[RecurringPattern] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class ExpenseCreate(_EntryCreate):
    location: Optional[str] = Field(default=None, max_length=100)


class ExpenseUpdate(_EntryUpdate):
    location: Optional[str] = Field(default=None, max_length=100)


class IncomeCreate(_EntryCreate):
    source: Optional[str] = Field(default=None, max_length=100)


class IncomeUpdate(_EntryUpdate):
    source: Optional[str] = Field(default=None, max_length=100)


# ---- BUDGETS ----

class BudgetCreate(_Body):
    category_id: RowId
    amount: Amount
    period: BudgetPeriod = "monthly"
    start_date: Optional[dt.date] = None
    alert_threshold: Percent = 80
    notes: Optional[str] = Field(default="", max_length=500)


class BudgetUpdate(_Body):
    category_id: Optional[RowId] = None
    amount: Optional[Amount] = None
    period: Optional[BudgetPeriod] = None
    start_date: Optional[dt.date] = None
    alert_threshold: Optional[Percent] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None


# ---- DEBTS ----

class DebtCreate(_Body):
    name: str = Field(min_length=1, max_length=100)
    type: DebtType
    principal: Amount
    current_balance: Amount
    interest_rate: Percent
    minimum_payment: Amount
    due_day: int = Field(ge=1, le=31)
    start_date: Optional[dt.date] = None
    lender: Optional[str] = Field(default=None, max_length=100)
    account_number: Optional[str] = Field(default=None, max_length=50)
    status: DebtStatus = "active"
    reminder_enabled: bool = True
    reminder_days_before: int = Field(default=3, ge=0, le=31)
    total_paid: Optional[Amount] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    color: Optional[HexColor] = None


class DebtUpdate(_Body):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[DebtType] = None
    current_balance: Optional[Amount] = None
    interest_rate: Optional[Percent] = None
    minimum_payment: Optional[Amount] = None
    due_day: Optional[int] = Field(default=None, ge=1, le=31)
    lender: Optional[str] = Field(default=None, max_length=100)
    account_number: Optional[str] = Field(default=None, max_length=50)
    status: Optional[DebtStatus] = None
    reminder_enabled: Optional[bool] = None
    reminder_days_before: Optional[int] = Field(default=None, ge=0, le=31)
    notes: Optional[str] = Field(default=None, max_length=500)
    color: Optional[HexColor] = None
    total_paid: Optional[Amount] = None
    last_payment_date: Optional[dt.date] = None
    last_payment_amount: Optional[Amount] = None


class DebtPayment(_Body):
    amount: Amount
    date: Optional[dt.date] = None


# ---- CHATBOT ----

class ChatRequest(_Body):
    message: Optional[str] = None
    model: Optional[str] = None
    token: Optional[str] = None


class ModelCheck(_Body):
    model: str = Field(min_length=1)
