"""
Suggestion Module

This module asks a language model to suggest how a trip's debts could be
settled.

The suggestion is advisory only. It is never used in place of
``compute_settlement_plan()``: every suggestion is returned next to the
deterministic plan, together with a check of whether executing it would
actually bring all balances to zero.

Features:
    - Prompt built from expenses, members and recorded payments
    - JSON-mode chat completion through the OpenAI client
    - Reply validated with pydantic
    - Suggested plan simulated against the computed balances

Functions:
    build_prompt: Render the prompt text.
    suggest_settlement: Get a checked, advisory settlement suggestion.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import openai
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tripsettle.config.settings import settings
from tripsettle.errors import SuggestionError
from tripsettle.models import SettlementTransaction
from tripsettle.settlement import apply_plan, compute_settlement_plan
from tripsettle.splitter import compute_financials
from tripsettle.utils import is_zero, round_money

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = "You are an AI assistant that helps settle debts among travelers."

PROMPT_TEMPLATE = """Given a list of expenses, determine the simplest way for travelers to settle their debts, minimizing the number of transactions.

Expenses:
{expenses}

Payments already made:
{payments}

Members:
{members}

Suggest a settlement plan with the fewest number of transactions. Return a JSON object representing the settlement plan.

Output format:{{
  "settlementPlan": [
    {{
      "from": "payer_user_id",
      "to": "receiver_user_id",
      "amount": amount,
      "currency": "currency"
    }}
  ]
}}

Ensure the output is a valid JSON object."""


class SuggestedTransfer(BaseModel):
    """One transfer proposed by the model."""
    model_config = ConfigDict(populate_by_name=True)

    from_user_id: str = Field(alias="from")
    to_user_id: str = Field(alias="to")
    amount: Decimal = Field(gt=0)
    currency: str = ""


class SuggestedPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    settlement_plan: list[SuggestedTransfer] = Field(alias="settlementPlan")


@dataclass
class SettlementSuggestion:
    """
    A model-suggested plan alongside the deterministic one.

    Attributes:
        suggested: Transfers proposed by the model.
        deterministic: Output of compute_settlement_plan() for the same data.
        closes_balances: True if executing ``suggested`` settles everyone.
        residuals: Net balance per member after executing ``suggested``.
        unknown_members: IDs in ``suggested`` that are not trip members.
    """
    suggested: list[SuggestedTransfer]
    deterministic: list[SettlementTransaction]
    closes_balances: bool
    residuals: dict[str, Decimal] = field(default_factory=dict)
    unknown_members: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "advisory": True,
            "suggestedPlan": [
                {
                    "fromUserId": t.from_user_id,
                    "toUserId": t.to_user_id,
                    "amount": round_money(t.amount),
                    "currency": t.currency,
                }
                for t in self.suggested
            ],
            "deterministicPlan": [t.to_dict() for t in self.deterministic],
            "closesBalances": self.closes_balances,
            "residuals": {member_id: round_money(v) for member_id, v in self.residuals.items()},
            "unknownMembers": self.unknown_members,
        }


def build_prompt(members: list, expenses: list, recorded_payments: list) -> str:
    """Render the settlement prompt for the given trip data."""
    expense_lines = [
        f"- Payer: {e.paid_by}, Amount: {e.amount} {e.currency}, Participants: {','.join(e.participants)}"
        for e in expenses
    ]
    payment_lines = [
        f"- From: {p.from_user_id}, To: {p.to_user_id}, Amount: {p.amount} {p.currency}"
        for p in recorded_payments
    ]
    member_lines = [f"- {m.id}" for m in members]

    return PROMPT_TEMPLATE.format(
        expenses="\n".join(expense_lines) or "- none",
        payments="\n".join(payment_lines) or "- none",
        members="\n".join(member_lines) or "- none",
    )


def _default_client():
    if not settings.openai_api_key:
        raise SuggestionError("OPENAI_API_KEY is not configured")
    return openai.OpenAI(api_key=settings.openai_api_key)


def suggest_settlement(
    members: list,
    expenses: list,
    recorded_payments: Optional[list] = None,
    client=None,
    model: Optional[str] = None
) -> SettlementSuggestion:
    """
    Ask the language model for a settlement plan and check it.

    Args:
        members: List of Member objects.
        expenses: List of Expense objects.
        recorded_payments: List of RecordedPayment objects already made.
        client: OpenAI client; built from settings when omitted.
        model: Chat model name; defaults to settings.openai_model.

    Returns:
        SettlementSuggestion: The model's plan, the deterministic plan and
        whether the model's plan closes every balance.

    Raises:
        SuggestionError: If the API call fails or the reply is not a valid plan.
        UnsupportedSplitError: If an expense is not split equally.
    """
    recorded_payments = recorded_payments or []

    # Computed first so a data problem surfaces before paying for an API call
    financials = compute_financials(members, expenses, recorded_payments)
    deterministic = compute_settlement_plan(financials, strict=False)

    client = client or _default_client()
    prompt = build_prompt(members, expenses, recorded_payments)

    try:
        response = client.chat.completions.create(
            model=model or settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
    except openai.OpenAIError as e:
        logger.error("Settlement suggestion request failed: %s", e)
        raise SuggestionError(f"language model request failed: {e}") from e

    content = response.choices[0].message.content
    if not content:
        raise SuggestionError("language model returned an empty reply")

    try:
        suggested = SuggestedPlan.model_validate_json(content).settlement_plan
    except ValidationError as e:
        logger.warning("Unusable settlement suggestion: %s", e)
        raise SuggestionError("language model reply is not a valid settlement plan") from e

    member_ids = {m.id for m in members}
    mentioned = {t.from_user_id for t in suggested} | {t.to_user_id for t in suggested}
    unknown = sorted(mentioned - member_ids)

    after = apply_plan(financials, suggested)
    residuals = {f.member_id: f.net_balance for f in after}
    closes = not unknown and all(is_zero(v) for v in residuals.values())

    logger.info(
        "Settlement suggestion: %d transfers (deterministic %d), closes balances: %s",
        len(suggested), len(deterministic), closes,
    )

    return SettlementSuggestion(
        suggested=suggested,
        deterministic=deterministic,
        closes_balances=closes,
        residuals=residuals,
        unknown_members=unknown,
    )
