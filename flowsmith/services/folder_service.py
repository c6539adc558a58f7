from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from flowsmith.core.errors import FlowsmithError, RaceCondition
from flowsmith.core.logging import logger, log_fields
from flowsmith.integrations.langflow_client import LangflowClient
from flowsmith.models.profile import Profile

@dataclass
class FolderProvision:
    folder_id: Optional[str]
    is_new: bool

class FolderService:
    """
    Lazily gives each user one builder folder.

    A stored folder id is returned without any remote call. Otherwise a folder
    is created and its id written to the profile. A remote failure yields no
    folder at all; pushes then go to the builder's default namespace.
    """

    @staticmethod
    def folder_name(user_id: str, username: Optional[str] = None) -> str:
        return username or f"user-{user_id[:8]}"

    @staticmethod
    async def get_profile(db: AsyncSession, user_id: str, refresh: bool = False) -> Optional[Profile]:
        query = select(Profile).where(Profile.user_id == user_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def ensure_folder(
        db: AsyncSession,
        client: LangflowClient,
        user_id: str,
        username: Optional[str] = None,
    ) -> FolderProvision:
        profile = await FolderService.get_profile(db, user_id)
        if profile and profile.langflow_folder_id:
            logger.info(f"User already has folder: {profile.langflow_folder_id}", extra=log_fields(user_id=user_id))
            return FolderProvision(folder_id=profile.langflow_folder_id, is_new=False)

        name = FolderService.folder_name(user_id, username)
        logger.info(f"Creating new builder folder: {name}", extra=log_fields(user_id=user_id))
        try:
            folder_id = await client.create_folder(name, f"Workspace for {name}")
        except FlowsmithError as e:
            logger.error(
                f"Folder provisioning failed, continuing without a folder: {e.message}",
                extra=log_fields(user_id=user_id, status=e.status_code),
            )
            return FolderProvision(folder_id=None, is_new=False)

        try:
            profile = await FolderService.get_profile(db, user_id, refresh=True)
            if profile and profile.langflow_folder_id:
                logger.warning(
                    f"Another request provisioned a folder for {user_id} meanwhile; keeping {profile.langflow_folder_id}",
                    extra=log_fields(
                        race=RaceCondition.FOLDER_DOUBLE_PROVISION.value,
                        user_id=user_id,
                        orphan_folder_id=folder_id,
                    ),
                )
                return FolderProvision(folder_id=profile.langflow_folder_id, is_new=False)

            if profile is None:
                db.add(Profile(user_id=user_id, username=username, langflow_folder_id=folder_id))
            else:
                profile.langflow_folder_id = folder_id
                if username and not profile.username:
                    profile.username = username
            await db.flush()
        except SQLAlchemyError as e:
            # The folder exists remotely; losing the write only costs a second folder later.
            await db.rollback()
            logger.error(f"Error updating profile with folder ID: {e}", extra=log_fields(user_id=user_id, folder_id=folder_id))

        return FolderProvision(folder_id=folder_id, is_new=True)

    @staticmethod
    async def provision(
        db: AsyncSession,
        client: LangflowClient,
        user_id: str,
        username: Optional[str] = None,
    ) -> Optional[str]:
        return (await FolderService.ensure_folder(db, client, user_id, username)).folder_id
