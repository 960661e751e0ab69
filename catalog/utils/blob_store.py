import io
import logging
import uuid

from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app
from werkzeug.utils import secure_filename

from catalog.exceptions import StorageIOError
from .aws_services import get_s3_client

logger = logging.getLogger(__name__)


class Attachment:
    """An uploaded file held in memory until it reaches the blob store."""

    def __init__(self, data, content_type, filename=None):
        self.data = data
        self.content_type = content_type
        self.filename = filename

    @classmethod
    def from_file_storage(cls, file_storage):
        return cls(file_storage.read(), file_storage.mimetype, file_storage.filename)

    @property
    def size(self):
        return len(self.data)

    def __repr__(self):
        return f'<Attachment {self.filename} {self.content_type} {self.size}b>'


class BlobStore:
    def __init__(self, bucket=None, client=None, multipart_threshold=None, public_base_url=None):
        config = current_app.config
        self.bucket = bucket or config.get('S3_BUCKET_NAME')
        self.multipart_threshold = multipart_threshold or config.get('S3_MULTIPART_THRESHOLD', 8 * 1024 * 1024)
        base_url = public_base_url or config.get('S3_PUBLIC_BASE_URL') or f'https://{self.bucket}.s3.amazonaws.com'
        self.public_base_url = base_url.rstrip('/')
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_s3_client()
        return self._client

    def url_for(self, key):
        return f'{self.public_base_url}/{key}'

    def key_for(self, reference):
        prefix = self.public_base_url + '/'
        if reference.startswith(prefix):
            return reference[len(prefix):]
        return reference

    def upload(self, data, content_type, folder, filename=None):
        """Store ``data`` under ``folder`` and return its public URL."""
        name = secure_filename(filename or '') or 'file'
        key = f'{folder.strip("/")}/{uuid.uuid4()}-{name}'

        try:
            if len(data) >= self.multipart_threshold:
                self.client.upload_fileobj(
                    io.BytesIO(data),
                    self.bucket,
                    key,
                    ExtraArgs={'ContentType': content_type},
                    Config=TransferConfig(multipart_threshold=self.multipart_threshold)
                )
            else:
                self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            logger.error('Failed to upload file %s: %s', key, e)
            raise StorageIOError('Failed to upload file') from e

        logger.info('File uploaded successfully: %s', key)
        return self.url_for(key)

    def upload_attachment(self, attachment, folder):
        return self.upload(attachment.data, attachment.content_type, folder, attachment.filename)

    def delete(self, reference):
        """Remove a stored object. Deleting a missing object is not an error."""
        key = self.key_for(reference)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error('Failed to delete file %s: %s', key, e)
            raise StorageIOError('Failed to delete file') from e
        logger.info('File deleted successfully: %s', key)

    def ensure_bucket(self):
        """Create the bucket if it does not exist yet"""
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return False
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') not in ('404', 'NoSuchBucket'):
                raise
        params = {'Bucket': self.bucket}
        region = current_app.config.get('AWS_REGION')
        if region and region != 'us-east-1':
            params['CreateBucketConfiguration'] = {'LocationConstraint': region}
        self.client.create_bucket(**params)
        return True
