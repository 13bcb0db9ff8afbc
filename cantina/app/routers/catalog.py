from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.db.models import Bottle, TableType
from cantina.app.db.session import get_session
from cantina.app.routers.schemas import BottleOut, TableTypeOut


router = APIRouter(tags=["catalog"])


@router.get("/tables", response_model=list[TableTypeOut])
async def list_tables(session: AsyncSession = Depends(get_session)):
    result = await session.execute(
        select(TableType).where(TableType.active.is_(True)).order_by(TableType.sort_order, TableType.name)
    )
    return list(result.scalars())


@router.get("/tables/{slug}", response_model=TableTypeOut)
async def get_table(slug: str, session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(TableType).where(TableType.slug == slug))
    table = result.scalar_one_or_none()
    if table is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Table not found")
    return table


@router.get("/bottles", response_model=list[BottleOut])
async def list_bottles(session: AsyncSession = Depends(get_session)):
    """Bottle menu shown during checkout: active and in stock only."""
    result = await session.execute(
        select(Bottle)
        .where(Bottle.in_stock.is_(True), Bottle.active.is_(True))
        .order_by(Bottle.category, Bottle.sort_order, Bottle.price)
    )
    return list(result.scalars())
