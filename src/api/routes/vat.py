"""VAT split endpoint."""

from fastapi import APIRouter, Depends

from api.dependencies import verify_api_key
from api.models.requests import VatSplitRequest
from api.models.responses import VatBreakdownResponse
from services.vat import vat_from_gross, vat_from_net

router = APIRouter(prefix="/v1/vat", dependencies=[Depends(verify_api_key)])


@router.post("/split", response_model=VatBreakdownResponse)
async def vat_split_endpoint(payload: VatSplitRequest):
    """Split an amount into net, VAT and gross from either a gross or a net basis."""
    if payload.basis == "gross":
        breakdown = vat_from_gross(payload.amount, payload.rate)
    else:
        breakdown = vat_from_net(payload.amount, payload.rate)
    return VatBreakdownResponse.model_validate(breakdown)
