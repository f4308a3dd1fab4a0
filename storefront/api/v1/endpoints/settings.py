from fastapi import APIRouter

from storefront.api.deps import DB, AdminContext
from storefront.schemas.site_settings import SiteSettingsUpdate, SiteSettingsResponse
from storefront.services.settings_service import SettingsService


router = APIRouter(tags=["Settings"])


@router.get("", response_model=SiteSettingsResponse)
async def get_site_settings(db: DB):
    """Public business details and shipping rules."""
    site_settings = await SettingsService(db).get_settings()
    return SiteSettingsResponse.model_validate(site_settings)


@router.put("", response_model=SiteSettingsResponse)
async def update_site_settings(data: SiteSettingsUpdate, db: DB, ctx: AdminContext):
    site_settings = await SettingsService(db).update_settings(ctx, data)
    return SiteSettingsResponse.model_validate(site_settings)
