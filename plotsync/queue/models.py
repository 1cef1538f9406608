"""Queue data models."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar


class ImageType(str, Enum):
    """Category of a plot photo."""

    PLOT = "plot"
    HEALTH = "health"
    CANOPY = "canopy"
    SOIL = "soil"
    GROWTH = "growth"
    GALLERY = "gallery"
    OTHER = "other"


class GalleryCategory(str, Enum):
    """Gallery grouping for photos shown on the plot page."""

    LANDSCAPE = "landscape"
    TREES = "trees"
    WILDLIFE = "wildlife"
    ACTIVITIES = "activities"
    PEOPLE = "people"
    OTHER = "other"


@dataclass(frozen=True)
class PendingAction:
    """A generic API write waiting to be replayed."""

    body: Any  # JSON-serializable request body, never inspected
    description: str

    def to_record(self) -> Dict[str, Any]:
        return {"payload": self.body, "description": self.description}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "PendingAction":
        if "payload" not in record:
            raise KeyError("payload")
        description = record.get("description", "")
        if not isinstance(description, str):
            raise TypeError("description must be a string")
        return cls(body=record["payload"], description=description)


@dataclass(frozen=True)
class PendingImageUpload:
    """A compressed plot photo waiting to be uploaded."""

    plot_code: str
    image_type: ImageType
    base64_data: str  # data:image/jpeg;base64,... stored exactly as given
    gallery_category: Optional[GalleryCategory] = None
    description: Optional[str] = None
    uploader: Optional[str] = None
    date: Optional[str] = None

    @classmethod
    def create(
        cls,
        plot_code: str,
        image_type: str,
        base64_data: str,
        gallery_category: Optional[str] = None,
        description: Optional[str] = None,
        uploader: Optional[str] = None,
        date: Optional[str] = None,
    ) -> "PendingImageUpload":
        """Factory method that validates the enumerated fields."""
        return cls(
            plot_code=plot_code,
            image_type=ImageType(image_type),
            base64_data=base64_data,
            gallery_category=GalleryCategory(gallery_category) if gallery_category is not None else None,
            description=description,
            uploader=uploader,
            date=date,
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "plotCode": self.plot_code,
            "type": self.image_type.value,
            "base64Data": self.base64_data,
        }
        # Optional fields are omitted rather than written as null
        if self.gallery_category is not None:
            record["galleryCategory"] = self.gallery_category.value
        if self.description is not None:
            record["description"] = self.description
        if self.uploader is not None:
            record["uploader"] = self.uploader
        if self.date is not None:
            record["date"] = self.date
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "PendingImageUpload":
        plot_code = record["plotCode"]
        base64_data = record["base64Data"]
        if not isinstance(plot_code, str) or not isinstance(base64_data, str):
            raise TypeError("plotCode and base64Data must be strings")
        return cls.create(
            plot_code=plot_code,
            image_type=record["type"],
            base64_data=base64_data,
            gallery_category=record.get("galleryCategory"),
            description=record.get("description"),
            uploader=record.get("uploader"),
            date=record.get("date"),
        )


P = TypeVar("P", PendingAction, PendingImageUpload)


@dataclass(frozen=True)
class QueueEntry(Generic[P]):
    """One durably persisted pending write awaiting remote confirmation."""

    id: str
    enqueued_at: int  # epoch milliseconds
    payload: P
