# Media host client (Cloudinary)
import logging
import os
import uuid
from urllib.parse import urlparse

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class MediaHost:
    """
    Uploads files to Cloudinary and deletes them again.

    Both operations are best-effort: upload returns None on any failure and
    remove only logs. The local file handed to upload is always deleted.
    """

    def __init__(self, app=None):
        self.cloud_name = None
        self.api_key = None
        self.api_secret = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.cloud_name = app.config.get('CLOUDINARY_CLOUD_NAME')
        self.api_key = app.config.get('CLOUDINARY_API_KEY')
        self.api_secret = app.config.get('CLOUDINARY_API_SECRET')
        if self.configured:
            cloudinary.config(
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                secure=True
            )
        app.extensions['media_host'] = self

    @property
    def configured(self):
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def upload(self, local_file_path):
        """Upload a local file; returns {"url", "publicId"} or None."""
        if not local_file_path:
            return None
        try:
            if not self.configured:
                logger.warning("Media host is not configured, skipping upload of %s", local_file_path)
                return None

            result = cloudinary.uploader.upload(local_file_path, resource_type='auto')
            media_url = result.get('secure_url') or result.get('url')
            if not media_url:
                logger.error("Media host returned no url for %s", local_file_path)
                return None
            return {"url": media_url, "publicId": result.get('public_id')}
        except (cloudinary.exceptions.Error, OSError) as e:
            logger.error("Error uploading %s: %s", local_file_path, e)
            return None
        finally:
            _discard(local_file_path)

    def remove(self, media_url):
        """Delete a previously uploaded asset by its delivery URL."""
        if not media_url:
            return
        resource_type, public_id = parse_media_url(media_url)
        if not public_id:
            logger.warning("Cannot derive public id from %s", media_url)
            return
        if not self.configured:
            logger.warning("Media host is not configured, skipping removal of %s", media_url)
            return

        try:
            cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except cloudinary.exceptions.Error as e:
            logger.error("Error removing media %s: %s", media_url, e)


def parse_media_url(media_url):
    """
    Split a delivery URL such as
    https://res.cloudinary.com/demo/video/upload/v1712/folder/name.mp4
    into its resource type and public id: ("video", "folder/name").
    Returns (None, None) for URLs that are not delivery URLs.
    """
    segments = urlparse(media_url).path.split('/')
    if 'upload' not in segments:
        return None, None
    marker = segments.index('upload')
    if marker < 1:
        return None, None
    resource_type = segments[marker - 1]

    tail = segments[marker + 1:]
    if tail and tail[0].startswith('v') and tail[0][1:].isdigit():
        tail = tail[1:]
    if not tail or not tail[-1]:
        return None, None
    # Raw assets keep their extension in the public id
    if resource_type != 'raw':
        tail[-1] = os.path.splitext(tail[-1])[0]
    return resource_type, '/'.join(tail)


def save_upload(file_storage, upload_folder):
    """Store an incoming werkzeug FileStorage on disk; returns the path or None."""
    if file_storage is None or not file_storage.filename:
        return None
    os.makedirs(upload_folder, exist_ok=True)
    filename = secure_filename(file_storage.filename) or 'upload'
    path = os.path.join(upload_folder, f'{uuid.uuid4().hex}-{filename}')
    file_storage.save(path)
    return path


def _discard(path):
    if os.path.exists(path):
        os.remove(path)


media = MediaHost()
