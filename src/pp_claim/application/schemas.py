"""Pydantic schemas for the claim API (camelCase wire, decimals as strings)."""

from decimal import Decimal

from pydantic import Field

from src.pp_common.enums import RecordKind, Side
from src.pp_common.errors import MissingIdentifierError
from src.pp_common.schemas import CamelModel

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ClaimRequest(CamelModel):
    owner_id: str = Field(..., min_length=1)
    position_id: str | None = None
    lp_position_id: str | None = None

    def target(self) -> tuple[RecordKind, str]:
        """Exactly one identifier must be given; which one picks the record kind."""
        if self.position_id and not self.lp_position_id:
            return RecordKind.STAKE, self.position_id
        if self.lp_position_id and not self.position_id:
            return RecordKind.LIQUIDITY, self.lp_position_id
        raise MissingIdentifierError()


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ClaimResponse(CamelModel):
    record_id: str
    record_kind: RecordKind
    amount: Decimal
    payment_reference: str | None


class ClaimablePositionOut(CamelModel):
    position_id: str
    market_id: str
    side: Side
    original_amount: Decimal
    payout_amount: Decimal
    profit: Decimal


class ClaimableLPPositionOut(CamelModel):
    lp_position_id: str
    market_id: str
    original_amount: Decimal
    payout_amount: Decimal
    profit: Decimal


class ClaimableResponse(CamelModel):
    claimable_positions: list[ClaimablePositionOut]
    claimable_lp_positions: list[ClaimableLPPositionOut] = Field(
        alias="claimableLPPositions"
    )
    total_claimable: Decimal
