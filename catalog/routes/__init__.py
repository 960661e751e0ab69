from flask import current_app, request

from catalog.exceptions import InvalidRequest
from catalog.utils.blob_store import Attachment

MAX_PAGE_SIZE = 100


def request_data():
    """JSON body or form fields as a plain dict; repeated form keys become lists"""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise InvalidRequest('Request body must be valid JSON')
        if not isinstance(data, dict):
            raise InvalidRequest('Request body must be a JSON object')
        return data
    return {
        key: values if len(values) > 1 else values[0]
        for key, values in request.form.lists()
    }


def page_args():
    limit = request.args.get('limit', 10, type=int)
    if limit is None or limit < 1:
        raise InvalidRequest('limit must be a positive integer')
    cursor = request.args.get('cursor') or None
    return min(limit, MAX_PAGE_SIZE), cursor


def clean_text(data, fields):
    """Stripped, non-empty scalar values of ``fields``; repeated values are rejected"""
    cleaned = {}
    for field in fields:
        value = data.get(field)
        if isinstance(value, (list, dict)):
            raise InvalidRequest(f'{field} must be a single value.')
        if isinstance(value, str):
            value = value.strip()
        if value not in (None, ''):
            cleaned[field] = value
    return cleaned


def parse_number(data, field, errors, cast=int, minimum=None, maximum=None):
    value = data.get(field)
    if value in (None, ''):
        return None
    try:
        number = cast(value)
    except (TypeError, ValueError):
        errors.append(f'{field} must be a number.')
        return None
    if minimum is not None and number < minimum:
        errors.append(f'{field} must be at least {minimum}.')
    if maximum is not None and number > maximum:
        errors.append(f'{field} must be at most {maximum}.')
    return number


def uploaded_file(field, accepts, message):
    """The named multipart file as an Attachment, or None when absent"""
    storage = request.files.get(field)
    if storage is None or not storage.filename:
        return None
    if not accepts(storage.mimetype or ''):
        raise InvalidRequest(message)
    attachment = Attachment.from_file_storage(storage)
    limit = current_app.config.get('MAX_UPLOAD_SIZE')
    if limit and attachment.size > limit:
        raise InvalidRequest(f'{field} exceeds the maximum size of {limit} bytes')
    return attachment
