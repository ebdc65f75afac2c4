# money_manager/services/assistant.py
#
# Chat replies. Direct data questions are answered from the snapshot with
# fixed rules; open-ended questions go to the model host when the caller asked
# for a model and the host is up. Any model failure falls back to the rules.

import logging
import random
import re
from typing import Optional, Tuple

from money_manager.services import llm
from money_manager.services.context_builder import render_context
from money_manager.services.prompts import SYSTEM_PROMPT, affordability_block, instructions

logger = logging.getLogger(__name__)

DATA_QUERY_PHRASES = (
    "how much did i spend",
    "how much have i spent",
    "what did i spend",
    "show my spending",
    "show my expenses",
    "how much did i earn",
    "how much income",
    "show my income",
    "what is my balance",
    "account balance",
    "show my budget",
    "budget status",
)
AFFORDABILITY_WORDS = ("afford", "buy", "purchase", "$", "cost")
OPEN_ENDED_WORDS = (
    "plan",
    "outline",
    "steps",
    "action plan",
    "recommend",
    "prioritize",
    "improve cash flow",
    "strategy",
)
GREETINGS = ("hi", "hello", "hey", "whatsup", "what's up", "how are you")

AMOUNT_RE = re.compile(
    r"\$?\s*(\d[\d,]*(?:\.\d+)?)\s*(million|billion|thousand|m|b|k)?\b", re.IGNORECASE
)
SCALES = {
    "million": 1_000_000,
    "m": 1_000_000,
    "billion": 1_000_000_000,
    "b": 1_000_000_000,
    "thousand": 1_000,
    "k": 1_000,
}
SUBSCRIPTION_RE = re.compile(r"subscription|netflix|spotify|prime|apple|google|saas|monthly", re.IGNORECASE)

TIPS = [
    "Follow the 50/30/20 rule: 50% for needs, 30% for wants, 20% for savings and debt repayment.",
    "Build an emergency fund covering 3-6 months of expenses before investing aggressively.",
    "Pay off high-interest debts first to save money on interest charges.",
    "Track every expense, no matter how small. Awareness is the first step to better habits.",
    "Automate your savings by setting up automatic transfers on payday.",
    "Review subscriptions monthly and cancel ones you don't use regularly.",
    "Use the 24-hour rule for non-essential purchases over $50 to avoid impulse buying.",
    "Set specific financial goals: specific, measurable, achievable, relevant and time-bound.",
    "Review your spending weekly to catch issues early before they become habits.",
]

HELP_TEXT = """I'm your financial assistant! I can help you with:

- "Show my spending" - analyze your expenses
- "How's my budget?" - check budget status
- "What's my income?" - view income summary
- "Check my debts" - debt overview and advice
- "Savings advice" - get savings tips
- "Account balance" - see all account balances
- "Financial summary" - complete overview
- "Give me a tip" - random financial advice

What would you like to know?"""


def _has(message: str, *words: str) -> bool:
    return any(w in message for w in words)


def parse_amounts(message: str) -> list[float]:
    """Every money-looking number in the text, with k/m/b and word scales applied."""
    amounts = []
    for match in AMOUNT_RE.finditer(message):
        try:
            value = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        unit = (match.group(2) or "").lower()
        amounts.append(value * SCALES.get(unit, 1))
    return amounts


def mentions_affordability(message: str) -> bool:
    return _has(message, *AFFORDABILITY_WORDS) or re.search(r"\$\s*\d+", message) is not None


def _by_category(entries: list[dict]) -> list[Tuple[str, float]]:
    totals: dict[str, float] = {}
    for e in entries:
        totals[e["category"]] = totals.get(e["category"], 0.0) + e["amount"]
    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)


# ---- RULE HANDLERS ----

def _money_summary(s: dict, message: str) -> str:
    return (
        f"You have ${s['total_funds']:.2f} total across your accounts. This month: income "
        f"${s['month_income']:.2f}, expenses ${s['month_expenses']:.2f}. "
        f"Debts outstanding: ${s['total_debt']:.2f}."
    )


def _greeting(s: dict, message: str) -> str:
    return (
        "Hey there! I'm your finance assistant. I can chat, but I'm best at money stuff. "
        "Want a quick summary, your total balance, or this month's spending?"
    )


def _tell_me(s: dict, message: str) -> str:
    summary = (
        f"You have ${s['total_funds']:.2f} across accounts. This month: income ${s['month_income']:.2f}, "
        f"expenses ${s['month_expenses']:.2f}. Debts outstanding: ${s['total_debt']:.2f}."
    )
    return summary + '\nAsk: "Show my spending", "Income vs expense trend", or "Emergency fund guidance".'


def affordability_reply(s: dict, purchase: float) -> str:
    funds = s["total_funds"]
    monthly = s["month_expenses"]
    remaining = funds - purchase
    months_covered = remaining / monthly if monthly > 0 else None

    if remaining < 0:
        recommendation = "Recommendation: Not advisable. The purchase exceeds your available funds."
    elif months_covered is not None and months_covered < 1:
        recommendation = "Recommendation: Caution. Remaining funds cover less than one month of expenses."
    elif months_covered is not None and months_covered < 3:
        recommendation = "Recommendation: Consider waiting. Aim to keep at least 3 months of expenses as buffer."
    else:
        recommendation = "Recommendation: Reasonable. The purchase keeps a comfortable buffer based on current expenses."

    lines = [
        "Neutral Calculation:",
        f"Calculation: ${funds:.2f} - ${purchase:.2f} = ${remaining:.2f}",
        f"Monthly Expenses: ${monthly:.2f}",
        f"Outstanding Debts: ${s['total_debt']:.2f}",
    ]
    if months_covered is not None:
        lines.append(f"Months of expenses covered (remaining): {months_covered:.1f}")
    lines.append(recommendation)
    return "\n".join(lines)


def _spending(s: dict, message: str) -> str:
    expenses = s["expenses"]
    if not expenses:
        return "You haven't recorded any expenses this month yet. Start tracking your spending to get personalized insights!"
    total = s["month_expenses"]
    top_name, top_amount = _by_category(expenses)[0]
    share = top_amount / total * 100 if total else 0.0
    if top_amount > total * 0.4:
        note = "Tip: Consider reviewing this category for potential savings!"
    else:
        note = "Keep up the balanced spending!"
    return (
        f"This month, you've spent ${total:.2f} across {len(expenses)} transactions. Your highest spending "
        f"category is {top_name} at ${top_amount:.2f} ({share:.1f}% of total). {note}"
    )


def _largest_expense(s: dict, message: str) -> str:
    if not s["expenses"]:
        return "No expenses recorded this month."
    top = max(s["expenses"], key=lambda e: e["amount"])
    return f"Largest expense: ${top['amount']:.2f} for {top['category']} ({top['description']})."


def _average_expense(s: dict, message: str) -> str:
    expenses = s["expenses"]
    if not expenses:
        return "No expenses recorded this month."
    avg = s["month_expenses"] / len(expenses)
    return f"Average expense amount this month: ${avg:.2f} across {len(expenses)} transactions."


def _category_breakdown(s: dict, message: str) -> str:
    if not s["expenses"]:
        return "No expenses recorded this month."
    lines = "\n".join(f"  - {name}: ${amt:.2f}" for name, amt in _by_category(s["expenses"]))
    return f"Spending by category (this month, total ${s['month_expenses']:.2f}):\n{lines}"


def _income_breakdown(s: dict, message: str) -> str:
    if not s["incomes"]:
        return "No income recorded this month."
    lines = "\n".join(f"  - {name}: ${amt:.2f}" for name, amt in _by_category(s["incomes"]))
    return f"Income breakdown (this month, total ${s['month_income']:.2f}):\n{lines}"


def _payoff_priority(s: dict, message: str) -> str:
    if not s["debts"]:
        return "You have no debts recorded."
    ordered = sorted(s["debts"], key=lambda d: d["interest_rate"], reverse=True)
    lines = "\n".join(f"  - {d['name']}: ${d['current_balance']:.2f} at {d['interest_rate']}%" for d in ordered)
    return f"Payoff priority (highest interest first):\n{lines}\nTip: Target the top entry for fastest interest savings."


def _budget_utilisation(s: dict, message: str) -> str:
    if not s["budgets"]:
        return "No budgets set up."
    monthly = [b for b in s["budgets"] if b["period"] == "monthly"]
    lines = "\n".join(f"  - {b['category']['name']}: {b['percentage_used']:.1f}% used" for b in monthly)
    return f"Budget utilization (monthly):\n{lines}"


def _runway(s: dict, message: str) -> str:
    if s["month_expenses"] <= 0:
        return "No expenses recorded this month to compute runway."
    return f"Current funds cover ~{s['total_funds'] / s['month_expenses']:.1f} months of expenses."


def _income(s: dict, message: str) -> str:
    if not s["incomes"]:
        return "No income recorded this month. Add your income sources to track your cash flow better!"
    return (
        f"Your total income this month is ${s['month_income']:.2f} from {len(s['incomes'])} source(s). "
        "Make sure to allocate some towards savings and investments."
    )


def _budget_status(s: dict, message: str) -> str:
    budgets = s["budgets"]
    if not budgets:
        return (
            "You don't have any budgets set up yet. Creating budgets helps you control spending "
            "and reach your financial goals!"
        )
    today = s["today"]
    current = [b for b in budgets if b["period"] == "monthly" and b["start_date"] <= today <= b["end_date"]]
    if not current:
        return (
            f"You have {len(budgets)} budget(s) defined, but none are active for the current month. "
            "Consider creating monthly budgets to track your spending better!"
        )

    over = [b for b in current if b["is_exceeded"]]
    near = [b for b in current if not b["is_exceeded"] and b["percentage_used"] >= b["alert_threshold"]]
    if over:
        names = ", ".join(b["category"]["name"] for b in over)
        return (
            f"Alert! You've exceeded {len(over)} budget(s) this month: {names}. "
            "Review your spending in these categories to get back on track!"
        )
    if near:
        names = ", ".join(f"{b['category']['name']} ({b['percentage_used']:.1f}%)" for b in near)
        return f"Warning! You're approaching the limit on {len(near)} budget(s): {names}. Watch your spending carefully!"
    return f"Looking good! All {len(current)} active budgets are under control."


def _debts(s: dict, message: str) -> str:
    debts = s["debts"]
    if not debts:
        return "Great news! You have no debts recorded. Stay debt-free by living within your means!"
    total_original = sum(d["principal"] for d in debts)
    total_paid = sum(d["total_paid"] for d in debts)
    progress = total_paid / total_original * 100 if total_original > 0 else 0.0
    highest = max(debts, key=lambda d: d["interest_rate"])
    return (
        f"You have {len(debts)} debt(s) totaling ${s['total_debt']:.2f}. You've paid off ${total_paid:.2f} "
        f"({progress:.1f}% progress). Focus on paying off \"{highest['name']}\" first "
        f"({highest['interest_rate']}% interest) to save on interest charges!"
    )


def _savings(s: dict, message: str) -> str:
    income = s["month_income"]
    net = income - s["month_expenses"]
    if net <= 0:
        return (
            f"You're currently spending more than you earn this month (deficit: ${abs(net):.2f}). "
            "Review your expenses and look for areas to cut back. Start with discretionary spending!"
        )
    rate = net / income * 100 if income > 0 else 0.0
    if rate >= 20:
        note = "Excellent! You're on track for strong financial health!"
    elif rate >= 10:
        note = "Good job! Try to increase this to 20% for optimal financial security."
    else:
        note = "Consider increasing your savings rate to at least 20% of your income."
    return f"This month, you're saving ${net:.2f} ({rate:.1f}% savings rate). {note}"


def _balance(s: dict, message: str) -> str:
    if not s["accounts"]:
        return "You don't have any accounts set up. Add your bank accounts, credit cards, and wallets to track your total balance!"
    lines = "\n".join(f"  - {a['name']}: ${a['balance']:.2f}" for a in s["accounts"])
    if s["total_funds"] > 0:
        note = "Keep building your wealth!"
    else:
        note = "Consider ways to increase your income or reduce expenses."
    return f"Your Total Balance: ${s['total_funds']:.2f}\n\nAccounts breakdown:\n{lines}\n\n{note}"


def _tip(s: dict, message: str) -> str:
    return random.choice(TIPS)


def _emergency_fund(s: dict, message: str) -> str:
    low = s["month_expenses"] * 3
    high = s["month_expenses"] * 6
    funds = s["total_funds"]
    head = (
        f"Emergency fund target: ${low:.2f}-${high:.2f} (3-6 months of expenses).\n"
        f"Current savings: ${funds:.2f}.\n"
    )
    if low - funds > 0:
        return head + (
            f"You're short by ~${low - funds:.2f} for 3 months and ~${high - funds:.2f} for 6 months. "
            "Consider allocating a portion of monthly savings until you reach this range."
        )
    return head + "You've met the 3-month baseline. Consider aiming for 6 months for stronger resilience."


def _subscriptions(s: dict, message: str) -> str:
    subs = [e for e in s["expenses"] if SUBSCRIPTION_RE.search(f"{e['description']} {e['category']}")]
    if not subs:
        return "No obvious subscriptions detected this month. Review your expenses to confirm recurring charges."
    total = sum(e["amount"] for e in subs)
    lines = "\n".join(f"  - {e['category']}: ${e['amount']:.2f} ({e['description']})" for e in subs)
    return (
        f"This month, subscriptions total ${total:.2f} across {len(subs)} charge(s):\n{lines}\n"
        "Tip: Cancel unused subscriptions or switch to annual plans if cheaper."
    )


def _savings_goal(s: dict, message: str) -> str:
    monthly_savings = max(0.0, s["month_income"] - s["month_expenses"])
    amounts = parse_amounts(message)
    target = amounts[0] if amounts else None
    if not target or target <= 0:
        return (
            f'Tell me the target (e.g. "savings goal $5,000"). Based on your month: income '
            f"${s['month_income']:.2f}, expenses ${s['month_expenses']:.2f}, estimated monthly savings "
            f"${monthly_savings:.2f}."
        )
    if monthly_savings > 0:
        when = f"{target / monthly_savings:.1f} months"
    else:
        when = "No savings (increase surplus to hit the goal)"
    return (
        f"Goal: ${target:.2f}. Estimated monthly savings: ${monthly_savings:.2f}.\n"
        f"Time to reach: {when}. Consider automating transfers to stay consistent."
    )


def _net_worth(s: dict, message: str) -> str:
    net_worth = s["total_funds"] - s["total_debt"]
    projected = net_worth + max(0.0, s["month_income"] - s["month_expenses"]) * 12
    return (
        f"Current net worth: ${net_worth:.2f} (assets minus debts).\n"
        f"Projected (12 months at current surplus): ${projected:.2f}.\n"
        "Note: This simple projection excludes investment returns or changes to debts."
    )


def _fifty_thirty_twenty(s: dict, message: str) -> str:
    base = s["month_expenses"]
    return (
        f"50/30/20 guideline for this month: Needs ~${base * 0.5:.2f}, Wants ~${base * 0.3:.2f}, "
        f"Savings/Debt ~${base * 0.2:.2f}. Adjust categories to align near these targets."
    )


def _trend(s: dict, message: str) -> str:
    surplus = s["month_income"] - s["month_expenses"]
    kind = "surplus" if surplus >= 0 else "deficit"
    return (
        f"This month: income ${s['month_income']:.2f} vs expenses ${s['month_expenses']:.2f}. "
        f"Net {kind}: ${abs(surplus):.2f}."
    )


def _cash_flow_plan(s: dict, message: str) -> str:
    surplus = s["month_income"] - s["month_expenses"]
    cut = max(0.0, s["month_expenses"] * 0.1)
    extra = min(max(0.0, surplus), s["total_funds"] * 0.05)
    return "\n".join(
        [
            "3-step cash flow plan:",
            f"1) Reduce discretionary categories by ~${cut:.2f} this month (aim ~10% cut across non-essential spending).",
            f"2) Make an extra debt payment of ~${extra:.2f} toward highest-interest debt to lower future interest costs.",
            "3) Pause or downgrade subscriptions and set a weekly review to keep total monthly expenses "
            f"under ${s['month_expenses'] - cut:.2f}.",
        ]
    )


def _summary(s: dict, message: str) -> str:
    net = s["month_income"] - s["month_expenses"]
    return (
        f"Financial Summary for {s['month_label']}:\n\n"
        f"Total Balance: ${s['total_funds']:.2f}\n"
        f"Income: ${s['month_income']:.2f}\n"
        f"Expenses: ${s['month_expenses']:.2f}\n"
        f"Net Savings: ${net:.2f}\n"
        f"Total Debt: ${s['total_debt']:.2f}\n"
        f"Net Worth: ${s['total_funds'] - s['total_debt']:.2f}\n\n"
        f"{len(s['budgets'])} active budget(s), {len(s['accounts'])} account(s)."
    )


# More specific phrases are carved out of the broad keyword rules so they
# reach their own handler further down the list.
_SPECIFIC_EXPENSE = (
    "largest expense", "biggest expense", "average expense", "avg expense",
    "average transaction", "category breakdown", "spending by category", "income vs expense",
)

RULES = [
    (lambda m: _has(m, "spending", "spent", "expense") and not _has(m, *_SPECIFIC_EXPENSE), _spending),
    (lambda m: _has(m, "largest expense", "biggest expense"), _largest_expense),
    (lambda m: _has(m, "average expense", "avg expense", "average transaction"), _average_expense),
    (lambda m: _has(m, "category breakdown", "spending by category"), _category_breakdown),
    (lambda m: _has(m, "income breakdown", "income sources"), _income_breakdown),
    (lambda m: _has(m, "payoff priority", "which debt first"), _payoff_priority),
    (lambda m: _has(m, "budget breakdown", "budget utilization", "budget utilisation"), _budget_utilisation),
    (lambda m: _has(m, "runway", "months of expenses"), _runway),
    (lambda m: _has(m, "income", "earn", "salary") and not _has(m, "income vs expense"), _income),
    (
        lambda m: _has(m, "budget", "limit") and not _has(m, "recommend budget", "budget recommendation"),
        _budget_status,
    ),
    (lambda m: _has(m, "debt", "owe", "loan"), _debts),
    (lambda m: _has(m, "save", "saving") and not _has(m, "savings goal", "save for"), _savings),
    (lambda m: _has(m, "balance", "account", "money", "funds", "total available"), _balance),
    (lambda m: _has(m, "tip", "advice", "help", "suggest"), _tip),
    (lambda m: _has(m, "emergency fund", "rainy day", "3-6 months"), _emergency_fund),
    (lambda m: _has(m, "subscription", "recurring"), _subscriptions),
    (lambda m: _has(m, "savings goal", "goal", "save for"), _savings_goal),
    (lambda m: _has(m, "net worth", "projection"), _net_worth),
    (lambda m: _has(m, "recommend budget", "budget recommendation"), _fifty_thirty_twenty),
    (lambda m: _has(m, "trend", "income vs expense"), _trend),
    (lambda m: _has(m, "outline", "plan", "steps", "improve cash flow"), _cash_flow_plan),
    (lambda m: _has(m, "summary", "overview", "report"), _summary),
]


def rule_reply(message: str, snapshot: dict) -> str:
    for matches, handler in RULES:
        if matches(message):
            return handler(snapshot, message)
    return HELP_TEXT


def _ask_model(message: str, snapshot: dict, model: str, max_tokens: int, purchase: bool) -> str:
    system = SYSTEM_PROMPT.strip() + "\n\n" + render_context(snapshot) + "\n\n" + instructions(snapshot["total_funds"])
    if purchase:
        system += "\n\n" + affordability_block(
            snapshot["total_funds"], snapshot["month_expenses"], snapshot["total_debt"]
        )
    messages = [
        {"role": "system", "content": system},
        {"role": "user", "content": message},
    ]
    return llm.query_llm(messages, model=model, max_tokens=max_tokens)


def generate_reply(message: str, snapshot: dict, model: Optional[str] = None) -> Tuple[str, str]:
    """Return (reply, source) where source is "llm" or "rules"."""
    m = message.lower().strip()
    data_query = _has(m, *DATA_QUERY_PHRASES)
    # "savings goal $5,000" names a target, not a purchase
    affordability = mentions_affordability(m) and not _has(m, "savings goal", "save for")
    financial = data_query or affordability or _has(m, "money", "balance", "summary")
    open_ended = _has(m, *OPEN_ENDED_WORDS)

    if "tell me about my money" in m or ("how much money" in m and not affordability):
        return _money_summary(snapshot, m), "rules"

    online = bool(model) and llm.check_status()

    if online and not data_query and not affordability and (financial or open_ended):
        try:
            return _ask_model(message, snapshot, model, 300, purchase=False), "llm"
        except llm.LLMOfflineError:
            logger.warning("Model call failed, answering from rules")

    is_greeting = any(m == g or (m.startswith(g) and len(m) <= len(g) + 3) for g in GREETINGS)
    if is_greeting and not data_query and not affordability and not open_ended:
        return _greeting(snapshot, m), "rules"

    if m.startswith("tell me"):
        return _tell_me(snapshot, m), "rules"

    if affordability:
        amounts = parse_amounts(m)
        if amounts:
            return affordability_reply(snapshot, max(amounts)), "rules"

    if online and not data_query:
        try:
            return _ask_model(message, snapshot, model, 250, purchase=affordability), "llm"
        except llm.LLMOfflineError:
            logger.warning("Model call failed, answering from rules")

    return rule_reply(m, snapshot), "rules"
