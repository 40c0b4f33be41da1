"""REST endpoints for the champion roster."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(prefix="/api/champions", tags=["champions"])


@router.get("")
async def list_champions(request: Request, role: Optional[str] = None, q: Optional[str] = None):
    """List roster champions, optionally filtered by role and name."""
    catalog = request.app.state.catalog
    try:
        champions = catalog.filter(role=role, query=q)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "patch": catalog.patch,
        "champions": [c.to_dict() for c in champions],
        "count": len(champions),
    }
