from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class MediaSize(BaseModel):
    width: int = 1
    height: int = 1


class CameraData(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    lens: Optional[str] = None
    iso: Optional[int] = None
    focal_length: Optional[float] = None
    exposure: Optional[float] = None
    f_stop: Optional[float] = None


class GPSData(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PositionData(BaseModel):
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    gps: Optional[GPSData] = None


class FaceBox(BaseModel):
    """Pixel rectangle anchored at its top-left corner."""

    left: int
    top: int
    width: int
    height: int


class FaceRegion(BaseModel):
    name: str
    box: FaceBox


class PhotoMetadata(BaseModel):
    size: MediaSize = Field(default_factory=MediaSize)
    creation_date: int = 0  # ms since epoch, 0 when unknown
    creation_date_offset: Optional[str] = None
    file_size: int = 0
    camera_data: Optional[CameraData] = None
    position_data: Optional[PositionData] = None
    keywords: Optional[list[str]] = None
    rating: Optional[int] = None
    faces: Optional[list[FaceRegion]] = None
    title: Optional[str] = None
    caption: Optional[str] = None


class VideoMetadata(BaseModel):
    size: MediaSize = Field(default_factory=MediaSize)
    bit_rate: int = 0
    duration: int = 0  # ms
    fps: int = 0
    creation_date: int = 0
    creation_date_offset: Optional[str] = None
    file_size: int = 0
    keywords: Optional[list[str]] = None
    rating: Optional[int] = None


class PhotoItem(BaseModel):
    name: str
    directory_path: str
    kind: Literal["photo"] = "photo"
    metadata: PhotoMetadata = Field(default_factory=PhotoMetadata)


class VideoItem(BaseModel):
    name: str
    directory_path: str
    kind: Literal["video"] = "video"
    metadata: VideoMetadata = Field(default_factory=VideoMetadata)


class DirectoryNode(BaseModel):
    name: str
    path: str  # parent path, "./" for top-level entries
    last_modified: int = 0
    last_scanned: Optional[int] = None
    scanned: bool = False
    is_partial: bool = False
    directories: list["DirectoryNode"] = Field(default_factory=list)
    photos: list[PhotoItem] = Field(default_factory=list)
    videos: list[VideoItem] = Field(default_factory=list)

    @property
    def media(self) -> list[PhotoItem | VideoItem]:
        return [*self.photos, *self.videos]


DirectoryNode.model_rebuild()
