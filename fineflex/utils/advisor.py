"""
Rule-based financial advice.

Used as the chat fallback whenever the AI service can't answer. The question
is matched against ADVICE_RULES in order and the first rule whose keywords
appear in it renders the reply. Output depends only on the inputs, so the
same question and facts always give the same text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

from fineflex.utils.analyzer import StatisticsSnapshot

ExpenseRow = Mapping[str, Any]
Template = Callable[[str, StatisticsSnapshot, Sequence[ExpenseRow], str], str]

BUDGET_RULE_SENTENCE = "Try the 50/30/20 rule: 50% needs, 30% wants, 20% savings."


def format_amount(value: Any, currency: str = "") -> str:
    """Plain numeric literal: 500 -> "500", 99.5 -> "99.50"."""
    number = round(float(value or 0), 2)
    if number.is_integer():
        return f"{currency}{int(number)}"
    return f"{currency}{number:.2f}"


def _savings(question: str, facts: StatisticsSnapshot, expenses: Sequence[ExpenseRow], currency: str) -> str:
    return (
        "Based on your current financial situation:\n"
        f"• Monthly Income: {format_amount(facts.monthly_income, currency)}\n"
        f"• Current Savings: {format_amount(facts.saved_amount, currency)}\n"
        f"• Savings Goal: {format_amount(facts.savings_goal, currency)}\n"
        "\n"
        f"I recommend setting aside 20% of your income ({format_amount(facts.monthly_income * 0.2, currency)}) each month. "
        "Consider automating transfers to your savings account right after you receive your income."
    )


def _budget(question: str, facts: StatisticsSnapshot, expenses: Sequence[ExpenseRow], currency: str) -> str:
    # dicts keep first-appearance order
    categories: Dict[str, float] = {}
    for exp in expenses:
        category = exp.get("category") or "other"
        categories[category] = categories.get(category, 0.0) + float(exp.get("amount", 0))

    lines = ["Your spending breakdown:"]
    lines.extend(f"• {cat}: {format_amount(total, currency)}" for cat, total in categories.items())
    return "\n".join(lines) + "\n\n" + BUDGET_RULE_SENTENCE


def _invest(question: str, facts: StatisticsSnapshot, expenses: Sequence[ExpenseRow], currency: str) -> str:
    return (
        f"For your income of {format_amount(facts.monthly_income, currency)}, consider these investment options:\n"
        f"1. Emergency Fund: 3-6 months of expenses ({format_amount(facts.total_expenses * 4, currency)})\n"
        f"2. Mutual Funds: Start with {format_amount(min(5000, facts.monthly_income * 0.1), currency)} monthly SIP\n"
        "3. Fixed Deposits: Safe option for short-term goals"
    )


def _debt(question: str, facts: StatisticsSnapshot, expenses: Sequence[ExpenseRow], currency: str) -> str:
    return (
        "For debt management:\n"
        "• Prioritize high-interest debts first\n"
        "• Consider debt consolidation if you have multiple loans\n"
        "• Aim to keep total EMI under 40% of your monthly income"
    )


def _generic(question: str, facts: StatisticsSnapshot, expenses: Sequence[ExpenseRow], currency: str) -> str:
    return (
        f'I understand you\'re asking about "{question}". As your financial advisor, I can see:\n'
        f"• Your monthly income: {format_amount(facts.monthly_income, currency)}\n"
        f"• Current expenses: {format_amount(facts.total_expenses, currency)}\n"
        f"• Savings progress: {format_amount(facts.saved_amount, currency)} of {format_amount(facts.savings_goal, currency)} goal\n"
        "\n"
        "For personalized advice, consider tracking all your expenses and setting clear financial goals. "
        "Would you like specific advice on savings, budgeting, or investments?"
    )


@dataclass(frozen=True)
class AdviceRule:
    name: str
    keywords: Tuple[str, ...]
    template: Template

    def matches(self, question: str) -> bool:
        q = question.lower()
        return any(keyword in q for keyword in self.keywords)


# Priority order: first match wins
ADVICE_RULES: Tuple[AdviceRule, ...] = (
    AdviceRule("savings", ("save", "saving"), _savings),
    AdviceRule("budget", ("budget", "spend"), _budget),
    AdviceRule("invest", ("invest", "grow"), _invest),
    AdviceRule("debt", ("debt", "loan"), _debt),
)

GENERIC_RULE = AdviceRule("generic", (), _generic)


def match_rule(question: str) -> AdviceRule:
    for rule in ADVICE_RULES:
        if rule.matches(question):
            return rule
    return GENERIC_RULE


def generate_advice(
    question: str,
    facts: StatisticsSnapshot,
    expenses: Sequence[ExpenseRow] = (),
    currency: str = "",
) -> str:
    """
    Deterministic advice for `question`.

    `facts` supplies income, goal, total expenses and saved amount; `expenses`
    are the recent entries (name, amount, category) the budget breakdown is
    built from.
    """
    question = question or ""
    rule = match_rule(question)
    return rule.template(question, facts, expenses, currency)
