from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, status

from services.halacious import Halacious
from utils.hal import get_halacious, hal_response


router = APIRouter(
    tags=["Rels"],
)


def describe_rel(rel) -> dict:
    return {
        "name": rel.name,
        "qname": rel.qname(),
        "description": rel.description,
    }


# -----------------------------------------------------------------------------
# GET Endpoints
# -----------------------------------------------------------------------------

# GET all namespaces and their rels
@router.get("", name="list_namespaces")
async def list_namespaces(request: Request, halacious: Halacious = Depends(get_halacious)):

    def embed_namespaces(representation):
        for namespace in halacious.namespaces():
            child = representation.embed(
                "namespaces",
                f"{halacious.settings.RELS_PATH}/{namespace.name}",
                {"name": namespace.name, "prefix": namespace.prefix, "description": namespace.description},
            )
            rels = sorted(namespace.rels.values(), key=lambda rel: rel.name)
            child.embed("rels", None, [])
            for rel in rels:
                child.embed("rels", f"./{rel.name}", describe_rel(rel))

    return await hal_response(request, {"count": len(halacious.namespaces())}, embed_namespaces)


# GET one rel's documentation
@router.get("/{namespace}/{rel}", name="get_rel")
async def get_rel(
    request: Request,
    namespace: str,
    rel: str,
    halacious: Halacious = Depends(get_halacious)
):
    """Documentation of a declared rel. Never creates the rel"""
    found = halacious.registry.find_rel(namespace, rel)
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f'Invalid rel "{namespace}" ("{rel}")',
        )

    entity = describe_rel(found)
    if found.file:
        entity["documentation"] = Path(found.file).read_text(encoding="utf-8")

    return await hal_response(request, entity)
