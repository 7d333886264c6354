"""Wire models for the delegation protocol.

Field aliases keep the JSON names older peers already speak
(including the historical ``coverThumlnail`` spelling).
"""

import base64
import binascii
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import VideoMetadata


class UrlRequest(BaseModel):
    url: Optional[str] = None


class VideoPayload(BaseModel):
    """VideoMetadata on the wire, thumbnail as base64."""

    model_config = ConfigDict(populate_by_name=True)

    thumbnail_base64: str = Field(alias="coverThumlnail")
    thumbnail_mime: str = Field(alias="coverMime")
    title: str = Field(alias="titleText")
    channel: str = Field(alias="channelText")
    publish_time: str = Field(alias="publishTimeText")
    description: str = Field(alias="descriptionText")
    tags: str = Field(alias="tagText")
    view_count: str = Field(alias="viewCountText")

    @classmethod
    def from_metadata(cls, metadata: VideoMetadata) -> "VideoPayload":
        return cls(
            thumbnail_base64=base64.b64encode(metadata.thumbnail).decode("ascii"),
            thumbnail_mime=metadata.thumbnail_mime,
            title=metadata.title,
            channel=metadata.channel,
            publish_time=metadata.publish_time,
            description=metadata.description,
            tags=metadata.tags,
            view_count=metadata.view_count,
        )

    def to_metadata(self) -> VideoMetadata:
        """Decode back into VideoMetadata.

        Raises:
            ValueError: the thumbnail is not valid base64
        """
        try:
            thumbnail = base64.b64decode(self.thumbnail_base64, validate=True)
        except binascii.Error as e:
            raise ValueError(f"coverThumlnail is not valid base64: {e}") from e
        return VideoMetadata(
            title=self.title,
            channel=self.channel,
            publish_time=self.publish_time,
            description=self.description,
            tags=self.tags,
            view_count=self.view_count,
            thumbnail=thumbnail,
            thumbnail_mime=self.thumbnail_mime,
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class ImageResponse(BaseModel):
    imageBase64: str

    @classmethod
    def from_bytes(cls, image: bytes) -> "ImageResponse":
        return cls(imageBase64=base64.b64encode(image).decode("ascii"))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.imageBase64)


class ErrorResponse(BaseModel):
    error: str
