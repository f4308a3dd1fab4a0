from fastapi import APIRouter

from storefront.api.deps import DB, Email
from storefront.schemas.contact import ContactRequest, ContactResponse
from storefront.services.contact_service import ContactService


router = APIRouter(tags=["Contact"])


@router.post("", response_model=ContactResponse)
async def submit_contact_form(data: ContactRequest, db: DB, email_service: Email):
    """
    Send the visitor a receipt and forward the message to the shop.

    Email failures are logged; the visitor still gets a success response.
    """
    message = await ContactService(db, email_service).submit(data)
    return ContactResponse(success=True, message=message)
