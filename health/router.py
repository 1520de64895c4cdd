from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/_health")
def health():
    # Keep this super simple; registry paths never start with "_health"
    return {"ok": True}
