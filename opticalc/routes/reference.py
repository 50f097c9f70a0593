from fastapi import APIRouter, HTTPException, Query

from ..models.api import DrugCategoryModel, DrugInfoModel, DrugSearchResponse
from ..services.drug_reference import DISCLAIMER, get_drug_reference

router = APIRouter()


@router.get("/drugs")
async def list_drugs():
    """All drug categories with the reference disclaimer."""
    categories = get_drug_reference().get_categories()
    return {
        "disclaimer": DISCLAIMER,
        "categories": [DrugCategoryModel.model_validate(c, from_attributes=True) for c in categories],
    }


@router.get("/drugs/search", response_model=DrugSearchResponse)
async def search_drugs(q: str = Query(..., min_length=2)):
    results = get_drug_reference().search(q)
    return DrugSearchResponse(
        query=q,
        results=[DrugInfoModel.model_validate(d, from_attributes=True) for d in results],
    )


@router.get("/drugs/{name}", response_model=DrugInfoModel)
async def get_drug(name: str):
    drug = get_drug_reference().get_drug(name)
    if drug is None:
        raise HTTPException(status_code=404, detail=f"Drug '{name}' not found")
    return DrugInfoModel.model_validate(drug, from_attributes=True)
