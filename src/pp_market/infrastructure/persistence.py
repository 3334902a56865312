"""MarketRepository — PostgreSQL implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Every state transition is a single `UPDATE ... WHERE <guard> RETURNING`: zero rows
returned means the guard failed (lost a race), and the caller maps that to a
business error. Nothing is ever read-then-written for a status or claim flag.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_common.amounts import to_decimal
from src.pp_common.enums import MarketStatus, Outcome, Side
from src.pp_market.domain.models import LiquidityPosition, Market, StakePosition

# ---------------------------------------------------------------------------
# SQL: markets
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, title, yes_pool, no_pool, total_lp_shares, status, outcome,
    end_time, resolved_at, created_at, updated_at
"""

_GET_MARKET_SQL = text(f"SELECT {_MARKET_COLUMNS} FROM markets WHERE id = :market_id")

_GET_MARKET_FOR_UPDATE_SQL = text(
    f"SELECT {_MARKET_COLUMNS} FROM markets WHERE id = :market_id FOR UPDATE"
)

_GET_MARKETS_BY_IDS_SQL = text(
    f"SELECT {_MARKET_COLUMNS} FROM markets WHERE id IN :market_ids"
).bindparams(bindparam("market_ids", expanding=True))

_TRANSITION_MARKET_SQL = text(f"""
    UPDATE markets
    SET status = :status,
        outcome = :outcome,
        resolved_at = :resolved_at
    WHERE id = :market_id AND status = 'active'
    RETURNING {_MARKET_COLUMNS}
""")

_APPLY_DEPOSIT_SQL = text(f"""
    UPDATE markets
    SET yes_pool = yes_pool + :yes_increment,
        no_pool = no_pool + :no_increment,
        total_lp_shares = total_lp_shares + :shares
    WHERE id = :market_id AND status = 'active'
    RETURNING {_MARKET_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: stake positions
# ---------------------------------------------------------------------------

_STAKE_COLUMNS = """
    id, market_id, owner_id, side, staked_amount, shares, claimed, created_at
"""

_GET_STAKE_SQL = text(f"SELECT {_STAKE_COLUMNS} FROM stake_positions WHERE id = :position_id")

_LIST_STAKES_BY_MARKET_SQL = text(f"""
    SELECT {_STAKE_COLUMNS} FROM stake_positions
    WHERE market_id = :market_id
    ORDER BY created_at, id
""")

_LIST_STAKES_BY_OWNER_SQL = text(f"""
    SELECT {_STAKE_COLUMNS} FROM stake_positions
    WHERE owner_id = :owner_id
    ORDER BY created_at, id
""")

_RESERVE_STAKE_SQL = text(f"""
    UPDATE stake_positions SET claimed = TRUE
    WHERE id = :position_id AND claimed = FALSE
    RETURNING {_STAKE_COLUMNS}
""")

_RELEASE_STAKE_SQL = text(f"""
    UPDATE stake_positions SET claimed = FALSE
    WHERE id = :position_id AND claimed = TRUE
    RETURNING {_STAKE_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: liquidity positions
# ---------------------------------------------------------------------------

_LP_COLUMNS = """
    id, market_id, owner_id, deposited_amount, shares, withdrawn_at, created_at
"""

_GET_LP_SQL = text(f"SELECT {_LP_COLUMNS} FROM liquidity_positions WHERE id = :lp_id")

_LIST_LPS_BY_MARKET_SQL = text(f"""
    SELECT {_LP_COLUMNS} FROM liquidity_positions
    WHERE market_id = :market_id
    ORDER BY created_at, id
""")

_LIST_LPS_BY_OWNER_SQL = text(f"""
    SELECT {_LP_COLUMNS} FROM liquidity_positions
    WHERE owner_id = :owner_id
    ORDER BY created_at, id
""")

_INSERT_LP_SQL = text(f"""
    INSERT INTO liquidity_positions (id, market_id, owner_id, deposited_amount, shares)
    VALUES (:id, :market_id, :owner_id, :deposited_amount, :shares)
    RETURNING {_LP_COLUMNS}
""")

_RESERVE_LP_SQL = text(f"""
    UPDATE liquidity_positions SET withdrawn_at = :withdrawn_at
    WHERE id = :lp_id AND withdrawn_at IS NULL
    RETURNING {_LP_COLUMNS}
""")

_RELEASE_LP_SQL = text(f"""
    UPDATE liquidity_positions SET withdrawn_at = NULL
    WHERE id = :lp_id AND withdrawn_at IS NOT NULL
    RETURNING {_LP_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_market(row: object) -> Market:
    outcome = row.outcome  # type: ignore[attr-defined]
    return Market(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        yes_pool=to_decimal(row.yes_pool),  # type: ignore[attr-defined]
        no_pool=to_decimal(row.no_pool),  # type: ignore[attr-defined]
        total_lp_shares=to_decimal(row.total_lp_shares),  # type: ignore[attr-defined]
        status=MarketStatus(row.status),  # type: ignore[attr-defined]
        outcome=Outcome(outcome) if outcome is not None else None,
        end_time=row.end_time,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_stake(row: object) -> StakePosition:
    return StakePosition(
        id=row.id,  # type: ignore[attr-defined]
        market_id=row.market_id,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        side=Side(row.side),  # type: ignore[attr-defined]
        staked_amount=to_decimal(row.staked_amount),  # type: ignore[attr-defined]
        shares=to_decimal(row.shares),  # type: ignore[attr-defined]
        claimed=bool(row.claimed),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_lp(row: object) -> LiquidityPosition:
    return LiquidityPosition(
        id=row.id,  # type: ignore[attr-defined]
        market_id=row.market_id,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        deposited_amount=to_decimal(row.deposited_amount),  # type: ignore[attr-defined]
        shares=to_decimal(row.shares),  # type: ignore[attr-defined]
        withdrawn_at=row.withdrawn_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    """Concrete repository — all transitions atomic at the SQL level."""

    # --- markets ---

    async def get_market(
        self, db: AsyncSession, market_id: str, for_update: bool = False
    ) -> Market | None:
        sql = _GET_MARKET_FOR_UPDATE_SQL if for_update else _GET_MARKET_SQL
        result = await db.execute(sql, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def get_markets_by_ids(
        self, db: AsyncSession, market_ids: list[str]
    ) -> list[Market]:
        if not market_ids:
            return []
        result = await db.execute(_GET_MARKETS_BY_IDS_SQL, {"market_ids": market_ids})
        return [_row_to_market(row) for row in result.fetchall()]

    async def transition_market_status(
        self,
        db: AsyncSession,
        market_id: str,
        status: MarketStatus,
        outcome: Outcome,
        resolved_at: datetime,
    ) -> Market | None:
        result = await db.execute(
            _TRANSITION_MARKET_SQL,
            {
                "market_id": market_id,
                "status": status.value,
                "outcome": outcome.value,
                "resolved_at": resolved_at,
            },
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def apply_liquidity_deposit(
        self,
        db: AsyncSession,
        market_id: str,
        yes_increment: Decimal,
        no_increment: Decimal,
        shares: Decimal,
    ) -> Market | None:
        result = await db.execute(
            _APPLY_DEPOSIT_SQL,
            {
                "market_id": market_id,
                "yes_increment": yes_increment,
                "no_increment": no_increment,
                "shares": shares,
            },
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None

    # --- stake positions ---

    async def get_stake_position(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        result = await db.execute(_GET_STAKE_SQL, {"position_id": position_id})
        row = result.fetchone()
        return _row_to_stake(row) if row else None

    async def list_stake_positions_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[StakePosition]:
        result = await db.execute(_LIST_STAKES_BY_MARKET_SQL, {"market_id": market_id})
        return [_row_to_stake(row) for row in result.fetchall()]

    async def list_stake_positions_by_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[StakePosition]:
        result = await db.execute(_LIST_STAKES_BY_OWNER_SQL, {"owner_id": owner_id})
        return [_row_to_stake(row) for row in result.fetchall()]

    async def reserve_stake_claim(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        result = await db.execute(_RESERVE_STAKE_SQL, {"position_id": position_id})
        row = result.fetchone()
        return _row_to_stake(row) if row else None

    async def release_stake_claim(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        result = await db.execute(_RELEASE_STAKE_SQL, {"position_id": position_id})
        row = result.fetchone()
        return _row_to_stake(row) if row else None

    # --- liquidity positions ---

    async def get_liquidity_position(
        self, db: AsyncSession, lp_position_id: str
    ) -> LiquidityPosition | None:
        result = await db.execute(_GET_LP_SQL, {"lp_id": lp_position_id})
        row = result.fetchone()
        return _row_to_lp(row) if row else None

    async def list_liquidity_positions_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[LiquidityPosition]:
        result = await db.execute(_LIST_LPS_BY_MARKET_SQL, {"market_id": market_id})
        return [_row_to_lp(row) for row in result.fetchall()]

    async def list_liquidity_positions_by_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[LiquidityPosition]:
        result = await db.execute(_LIST_LPS_BY_OWNER_SQL, {"owner_id": owner_id})
        return [_row_to_lp(row) for row in result.fetchall()]

    async def insert_liquidity_position(
        self,
        db: AsyncSession,
        market_id: str,
        owner_id: str,
        deposited_amount: Decimal,
        shares: Decimal,
    ) -> LiquidityPosition:
        result = await db.execute(
            _INSERT_LP_SQL,
            {
                "id": f"lp_{uuid.uuid4().hex}",
                "market_id": market_id,
                "owner_id": owner_id,
                "deposited_amount": deposited_amount,
                "shares": shares,
            },
        )
        return _row_to_lp(result.fetchone())

    async def reserve_liquidity_withdrawal(
        self, db: AsyncSession, lp_position_id: str, withdrawn_at: datetime
    ) -> LiquidityPosition | None:
        result = await db.execute(
            _RESERVE_LP_SQL, {"lp_id": lp_position_id, "withdrawn_at": withdrawn_at}
        )
        row = result.fetchone()
        return _row_to_lp(row) if row else None

    async def release_liquidity_withdrawal(
        self, db: AsyncSession, lp_position_id: str
    ) -> LiquidityPosition | None:
        result = await db.execute(_RELEASE_LP_SQL, {"lp_id": lp_position_id})
        row = result.fetchone()
        return _row_to_lp(row) if row else None
