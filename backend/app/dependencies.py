"""
FastAPI dependency providers.

Configuration is read from the environment once (lru_cache) and injected
into the services. Tests replace these providers with
``app.dependency_overrides``.
"""

import logging
import os
from functools import lru_cache

from app.db import supabase_admin
from app.services.broadcast import BroadcastDispatcher, BroadcastSettings
from app.services.mailer import MailSettings, SmtpMailTransport
from app.services.newsletter_repository import SupabaseNewsletterRepository
from app.services.publisher import NewsletterPublisher
from app.services.recipients import SupabaseRecipientDirectory
from app.services.storage import DEFAULT_BUCKET, SupabaseAssetStore

logger = logging.getLogger(__name__)


def _env_number(name: str, default, cast=float):
    """Read a numeric env var, falling back to ``default`` if it is unset or malformed."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={value!r}; using {default}")
        return default


@lru_cache
def get_mail_settings() -> MailSettings:
    return MailSettings.from_env()


@lru_cache
def get_broadcast_settings() -> BroadcastSettings:
    timeout = _env_number("BROADCAST_DELIVERY_TIMEOUT", 30.0)
    return BroadcastSettings(
        max_concurrency=_env_number("BROADCAST_MAX_CONCURRENCY", 50, int),
        delivery_timeout=timeout if timeout > 0 else None,
    )


def get_asset_store() -> SupabaseAssetStore:
    return SupabaseAssetStore(
        supabase_admin,
        bucket=os.getenv("NEWSLETTER_ASSET_BUCKET", DEFAULT_BUCKET),
    )


def get_newsletter_repository() -> SupabaseNewsletterRepository:
    return SupabaseNewsletterRepository(supabase_admin)


def get_recipient_directory() -> SupabaseRecipientDirectory:
    return SupabaseRecipientDirectory(supabase_admin)


@lru_cache
def get_dispatcher() -> BroadcastDispatcher:
    return BroadcastDispatcher(
        SmtpMailTransport(get_mail_settings()),
        get_broadcast_settings(),
    )


def get_publisher() -> NewsletterPublisher:
    return NewsletterPublisher(
        asset_store=get_asset_store(),
        repository=get_newsletter_repository(),
        directory=get_recipient_directory(),
        dispatcher=get_dispatcher(),
    )
