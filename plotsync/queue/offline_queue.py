"""The two offline queues: generic API actions and plot image uploads."""
from typing import Any, Optional

from plotsync import settings
from plotsync.queue.codec import EntryCodec
from plotsync.queue.durable_queue import DurableQueue
from plotsync.queue.models import PendingAction, PendingImageUpload
from plotsync.store import DurableStore


class ActionQueue(DurableQueue[PendingAction]):
    """Pending API payloads that could not be sent immediately."""

    def __init__(self, store: DurableStore, key: Optional[str] = None, **kwargs):
        super().__init__(store, key or settings.ACTION_QUEUE_KEY, EntryCodec(PendingAction), **kwargs)

    def enqueue_action(self, body: Any, description: str) -> str:
        return self.enqueue(PendingAction(body=body, description=description))


class ImageUploadQueue(DurableQueue[PendingImageUpload]):
    """Compressed plot photos waiting to be uploaded."""

    def __init__(self, store: DurableStore, key: Optional[str] = None, **kwargs):
        super().__init__(store, key or settings.IMAGE_QUEUE_KEY, EntryCodec(PendingImageUpload), **kwargs)

    def enqueue_image(
        self,
        plot_code: str,
        image_type: str,
        base64_data: str,
        gallery_category: Optional[str] = None,
        description: Optional[str] = None,
        uploader: Optional[str] = None,
        date: Optional[str] = None,
    ) -> str:
        """Queue an image; raises ValueError for an unknown type or category."""
        return self.enqueue(
            PendingImageUpload.create(
                plot_code=plot_code,
                image_type=image_type,
                base64_data=base64_data,
                gallery_category=gallery_category,
                description=description,
                uploader=uploader,
                date=date,
            )
        )
