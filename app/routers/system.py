from fastapi import APIRouter
from sqlalchemy.exc import ArgumentError

from app.config import get_settings
from app.schemas.system import (
    AppGroup,
    ChannelGroup,
    ConversationGroup,
    DatabaseGroup,
    GeneralGroup,
    SystemSettingsGrouped,
)

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/settings", response_model=SystemSettingsGrouped)
def get_system_settings() -> SystemSettingsGrouped:
    """Return grouped, non-sensitive system configuration settings for troubleshooting."""
    s = get_settings()

    app_group = AppGroup(
        name=s.app_name,
        environment=s.environment,
        log_level=s.log_level,
        port=s.port,
    )

    # Extract safe database info only (no credentials)
    database_host = None
    database_driver = None
    try:
        url_obj = s.database_url_obj
        database_host = url_obj.host
        database_driver = url_obj.get_backend_name()
    except (ValueError, ArgumentError):
        pass

    database_group = DatabaseGroup(
        database_host=database_host,
        database_driver=database_driver,
        pool_size=s.database_pool_size,
        max_overflow=s.database_max_overflow,
    )

    channel_group = ChannelGroup(
        gupshup_api_url=s.gupshup_api_url,
        default_source_number=s.gupshup_source_number,
        default_app_name=s.gupshup_app_name,
        outbound_timeout_seconds=s.outbound_timeout_seconds,
        instance_ids=s.channel_instance_ids,
        default_channel_instance_id=s.default_channel_instance_id,
        webhook_secret_configured=bool(s.whatsapp_webhook_secret),
    )

    conversation_group = ConversationGroup(
        transfer_trigger_phrases=s.transfer_trigger_phrases,
        write_retries=s.conversation_write_retries,
    )

    return SystemSettingsGrouped(
        app=app_group,
        database=database_group,
        general=GeneralGroup(is_production=s.is_production),
        channels=channel_group,
        conversations=conversation_group,
    )
