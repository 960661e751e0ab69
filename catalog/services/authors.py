from catalog.exceptions import InvalidRequest
from catalog.models.author import Author
from catalog.services.named_entity import NamedEntityManager
from catalog.utils.blob_store import BlobStore
from catalog.utils.dynamo_repo import AuthorRepository


def _check_profile_picture(attachment):
    if attachment is not None and not (attachment.content_type or '').startswith('image/'):
        raise InvalidRequest('Profile must be an image file')


class AuthorManager(NamedEntityManager):
    model = Author
    repository_class = AuthorRepository

    def __init__(self, repository=None, blobs=None):
        super().__init__(repository=repository, blobs=blobs or BlobStore())

    def create(self, data, profile_picture=None):
        _check_profile_picture(profile_picture)
        return super().create(data, profile_picture=profile_picture)

    def update(self, author_id, data, profile_picture=None):
        _check_profile_picture(profile_picture)
        return super().update(author_id, data, profile_picture=profile_picture)

    def _attach(self, record, attachments):
        picture = attachments.get('profile_picture')
        if picture is None:
            return []
        record['profile'] = self.blobs.upload_attachment(picture, Author.profile_folder)
        return [record['profile']]

    def _replace_attachments(self, existing, changes, attachments):
        picture = attachments.get('profile_picture')
        if picture is None:
            return [], []
        changes['profile'] = self.blobs.upload_attachment(picture, Author.profile_folder)
        return [changes['profile']], [existing.get('profile')]

    def _attachment_refs(self, record):
        return [record.get('profile')]
