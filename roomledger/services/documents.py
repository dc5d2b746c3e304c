"""File storage for uploaded documents."""
import logging
import os
from datetime import datetime

from flask import current_app
from werkzeug.utils import secure_filename

from ..errors import ValidationError
from ..extensions import db
from ..models import Document

logger = logging.getLogger(__name__)


def allowed_file(filename):
    allowed = current_app.config["DOCUMENT_EXTENSIONS"]
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed


def store_upload(file, entity_type, entity_id):
    """Save an uploaded file under UPLOAD_FOLDER; returns (absolute path, size in bytes)."""
    if file is None or not file.filename:
        raise ValidationError("No file selected")
    if not allowed_file(file.filename):
        allowed = ", ".join(sorted(current_app.config["DOCUMENT_EXTENSIONS"]))
        raise ValidationError(f"File type not allowed. Allowed types: {allowed}")

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = f"{entity_type.lower()}_{entity_id}_{timestamp}_{secure_filename(file.filename)}"
    filepath = os.path.abspath(os.path.join(folder, filename))
    file.save(filepath)
    return filepath, os.path.getsize(filepath)


def discard(paths):
    """Remove stored files; a file that is already gone is skipped."""
    for path in paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning("Document file already missing: %s", path)


def drop_for(entity_type, entity_ids):
    """
    Delete the document rows of the given entities and return their file
    paths, so the caller can discard them once the session commits.
    """
    if not entity_ids:
        return []
    documents = Document.query.filter(
        Document.entity_type == entity_type,
        Document.entity_id.in_(list(entity_ids)),
    ).all()
    for document in documents:
        db.session.delete(document)
    return [d.path for d in documents]
