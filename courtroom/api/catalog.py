"""Scenario and theme listing endpoints."""

from fastapi import APIRouter, Depends

from courtroom.lib.models import CatalogResponse, CourtroomTheme, Scenario
from courtroom.orchestrator.session import CourtroomSession, get_courtroom

router = APIRouter()


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> CatalogResponse:
    """Everything the selection screens need in one call."""
    catalog = courtroom.catalog
    return CatalogResponse(
        scenarios=catalog.list_scenarios(),
        themes=catalog.list_themes(),
        default_theme=catalog.default_theme,
    )


@router.get("/scenarios", response_model=list[Scenario])
async def list_scenarios(
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> list[Scenario]:
    return courtroom.catalog.list_scenarios()


@router.get("/themes", response_model=list[CourtroomTheme])
async def list_themes(
    courtroom: CourtroomSession = Depends(get_courtroom),
) -> list[CourtroomTheme]:
    return courtroom.catalog.list_themes()
