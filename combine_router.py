"""
Combination & catalog API routes.

Handles:
  /combine                              (stateless recipe lookup)
  /api/health
  /api/catalog/elements
  /api/players/{player_id}/discovered
  /api/players/{player_id}/combine
  /api/dev/untried
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

import catalog_service
from constants import MSG_CANNOT_COMBINE, MSG_NOT_DISCOVERED
from discovery_service import CombineStatus
from session_service import SessionDirectory

router = APIRouter(tags=["combine"])


def get_directory(request: Request) -> SessionDirectory:
    """FastAPI dependency returning the app's session directory."""
    return request.app.state.session_directory


# ── Request models ─────────────────────────────────────────────────────────

class CombineRequest(BaseModel):
    element_one: str
    element_two: str


class CombineResponse(BaseModel):
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None


# ── Stateless lookup ───────────────────────────────────────────────────────

@router.get("/combine", response_model=CombineResponse, response_model_exclude_none=True)
def api_combine(
    element_one: str = Query("", alias="element-one"),
    element_two: str = Query("", alias="element-two"),
    directory: SessionDirectory = Depends(get_directory),
) -> CombineResponse:
    catalog = directory.catalog
    result = catalog_service.lookup_recipe(catalog, element_one, element_two)
    if result is None:
        return CombineResponse(success=False, error=MSG_CANNOT_COMBINE)
    return CombineResponse(success=True, result=catalog_service.element_name(catalog, result))


@router.get("/api/health")
def api_health(directory: SessionDirectory = Depends(get_directory)) -> Dict[str, Any]:
    return {
        "ok": True,
        "service": "open-craft",
        "elements": len(directory.catalog),
    }


@router.get("/api/catalog/elements")
def api_catalog_elements(directory: SessionDirectory = Depends(get_directory)) -> Dict[str, Any]:
    return catalog_service.build_element_categories_payload(directory.catalog)


# ── Per-player progress ────────────────────────────────────────────────────

@router.get("/api/players/{player_id}/discovered")
def api_player_discovered(player_id: int, directory: SessionDirectory = Depends(get_directory)) -> Dict[str, Any]:
    with directory.locked(player_id) as session:
        discovered = session.discovered_list()
        payload = catalog_service.build_element_categories_payload(session.catalog, discovered)
        payload["player_id"] = player_id
        payload["discovered_count"] = len(discovered)
        payload["total_elements"] = len(session.catalog)
    return payload


@router.post("/api/players/{player_id}/combine")
def api_player_combine(
    player_id: int,
    req: CombineRequest,
    directory: SessionDirectory = Depends(get_directory),
) -> Dict[str, Any]:
    with directory.locked(player_id) as session:
        result, outcome = session.combine_and_commit(req.element_one, req.element_two)
        catalog = session.catalog

    if result.status is CombineStatus.NOT_DISCOVERED:
        return {"success": False, "error": MSG_NOT_DISCOVERED}
    if result.status is CombineStatus.NO_RECIPE:
        return {"success": False, "error": MSG_CANNOT_COMBINE}

    response: Dict[str, Any] = {
        "success": True,
        "result": catalog_service.element_name(catalog, result.element_id),
        "element_id": result.element_id,
        "is_new": result.is_new,
        "saved": bool(outcome and outcome.ok),
    }
    if outcome and not outcome.ok:
        response["error"] = outcome.error
    return response


# ── Developer tooling ──────────────────────────────────────────────────────

@router.get("/api/dev/untried")
def api_dev_untried(request: Request, directory: SessionDirectory = Depends(get_directory)) -> Dict[str, Any]:
    if not getattr(request.app.state, "dev_mode", False):
        raise HTTPException(status_code=404, detail="Not found")
    combos = catalog_service.untried_combinations(directory.catalog)
    return {
        "count": len(combos),
        "combinations": combos,
    }
