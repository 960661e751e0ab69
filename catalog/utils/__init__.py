from catalog.utils.decorators import admin_required, load_user_from_request
from catalog.utils.blob_store import Attachment, BlobStore
from catalog.utils.dynamo_repo import Page

__all__ = [
    'admin_required',
    'load_user_from_request',
    'Attachment',
    'BlobStore',
    'Page'
]
