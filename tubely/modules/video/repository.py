"""Video repository for database operations."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tubely.modules.video.models import Video


class VideoRepository:
    """Repository for Video CRUD operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID,
        title: str,
        description: Optional[str] = None,
    ) -> Video:
        """Create and persist a draft video.

        Args:
            user_id: Owning user UUID
            title: Video title
            description: Video description

        Returns:
            Video: Created video instance
        """
        video = Video(user_id=user_id, title=title, description=description)
        self.session.add(video)
        await self.session.commit()
        return video

    async def get_by_id(self, video_id: uuid.UUID) -> Optional[Video]:
        """Get video by ID.

        Returns:
            Optional[Video]: Video if found, None otherwise
        """
        result = await self.session.execute(select(Video).where(Video.id == video_id))
        return result.scalar_one_or_none()

    async def update(self, video: Video) -> Video:
        """Persist changes made to ``video``.

        The session is rolled back if the commit fails.
        """
        self.session.add(video)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return video
