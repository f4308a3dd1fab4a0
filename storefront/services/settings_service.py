"""Site settings singleton access."""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings as app_settings
from storefront.core.context import RequestContext
from storefront.models.site_settings import SiteSettings, DEFAULT_SETTINGS_ID
from storefront.schemas.site_settings import SiteSettingsUpdate


logger = logging.getLogger(__name__)


class SettingsService:
    """Reads and updates the single SiteSettings row, creating it on first use."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_settings(self) -> SiteSettings:
        result = await self.db.execute(
            select(SiteSettings).where(SiteSettings.id == DEFAULT_SETTINGS_ID)
        )
        site_settings = result.scalar_one_or_none()
        if site_settings is None:
            site_settings = SiteSettings(id=DEFAULT_SETTINGS_ID)
            self.db.add(site_settings)
            await self.db.flush()
            await self.db.refresh(site_settings)
            logger.info("Created default site settings")
        return site_settings

    async def update_settings(self, ctx: RequestContext, data: SiteSettingsUpdate) -> SiteSettings:
        ctx.require_admin()
        site_settings = await self.get_settings()

        for field, value in data.provided_fields().items():
            # Empty strings clear optional text fields
            if isinstance(value, str) and value == "" and field != "business_name":
                value = None
            setattr(site_settings, field, value)

        await self.db.flush()
        await self.db.refresh(site_settings)
        logger.info(f"Site settings updated by {ctx.email}: {sorted(data.provided_fields())}")
        return site_settings

    async def get_admin_email(self) -> Optional[str]:
        """Recipient for shop-owner notifications."""
        site_settings = await self.get_settings()
        return site_settings.contact_form_notification_email or app_settings.ADMIN_EMAIL or None
