"""Payment page schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .projects import PaymentMethodLiteral, ProjectResponse


class PaymentInstructions(BaseModel):
    """Where the client should send the out-of-band transfer."""

    methods: List[PaymentMethodLiteral] = Field(
        default_factory=lambda: ["jazzcash", "easypaisa", "bank"]
    )
    account_number: str = ""
    account_title: str = ""
    amount: float = 0


class PaymentPageResponse(BaseModel):
    project: ProjectResponse
    instructions: PaymentInstructions
