"""Kolour availability and minting queries."""

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

UNAVAILABLE_KOLOURS_QUERY = text(
    """
    SELECT
      kolour
    FROM
      kolours.kolour_book
    WHERE
      kolour IN :kolours
      AND status <> 'expired'
    """
).bindparams(bindparam("kolours", expanding=True))

MINTED_KOLOURS_QUERY = text(
    """
    WITH kolour_earning AS (
      SELECT
        gp.kolour,
        sum(coalesce(gb.fee / 100, gl.listed_fee / 200))::bigint AS expected_earning
      FROM
        kolours.genesis_kreation_list gl
        LEFT JOIN kolours.genesis_kreation_book gb
          ON gb.kreation = gl.kreation
            AND gb.status <> 'expired'
        INNER JOIN kolours.genesis_kreation_palette gp
          ON gp.kreation_id = gl.id
      GROUP BY
        gp.kolour
    )
    SELECT
      kb.kolour,
      kb.user_address,
      kb.fee,
      ke.expected_earning
    FROM
      kolours.kolour_book kb
      LEFT JOIN kolour_earning ke
        ON ke.kolour = kb.kolour
    WHERE
      kb.status <> 'expired'
    ORDER BY
      kb.id ASC
    """
)


@dataclass
class MintedKolourEntry:
    """A booked or minted kolour."""

    kolour: str
    user_address: str
    fee: int
    expected_earning: int | None = None


async def get_unavailable_kolours(
    session: AsyncSession, kolours: Sequence[str]
) -> set[str]:
    """Get the kolours that are already booked or minted.

    Args:
        session: Database session
        kolours: Kolours to check

    Returns:
        Subset of ``kolours`` that is not available
    """
    if not kolours:
        return set()
    result = await session.execute(UNAVAILABLE_KOLOURS_QUERY, {"kolours": list(kolours)})
    return {row.kolour for row in result}


async def are_kolours_available(session: AsyncSession, kolours: Sequence[str]) -> bool:
    """Check that none of the kolours is booked or minted."""
    return not await get_unavailable_kolours(session, kolours)


async def get_all_minted_kolours(session: AsyncSession) -> list[MintedKolourEntry]:
    """List every non-expired kolour with its owner, fee and expected earning.

    Expected earning sums, over the genesis kreations whose palette uses the
    kolour, 1% of the booked fee or 0.5% of the listed fee when unbooked.
    """
    result = await session.execute(MINTED_KOLOURS_QUERY)
    return [
        MintedKolourEntry(
            kolour=row.kolour,
            user_address=row.user_address,
            fee=row.fee,
            expected_earning=row.expected_earning,
        )
        for row in result
    ]
