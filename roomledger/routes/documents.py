import logging
import os

from flask import Blueprint, request, send_file
from flask_jwt_extended import jwt_required
from sqlalchemy import and_, false, or_

from ..errors import ApiError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Contract, Document, Property, Renter, Room
from ..models.enums import DocumentEntityType, DocumentType
from ..security import current_user, ensure_owns, is_admin
from ..services import documents as storage
from ..utils.db import commit
from ..utils.requests import ok, paginated, parse_choice

logger = logging.getLogger(__name__)

bp = Blueprint("documents", __name__)

ENTITY_MODELS = {
    DocumentEntityType.PROPERTY.value: Property,
    DocumentEntityType.ROOM.value: Room,
    DocumentEntityType.RENTER.value: Renter,
    DocumentEntityType.CONTRACT.value: Contract,
}


def _arg(source, name, camel):
    return source.get(name) or source.get(camel)


def _entity_id(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("entity_id must be an integer")


def _ensure_entity_access(entity_type, entity_id):
    """404 for a missing entity; renters reach only their own profile and contracts."""
    entity = db.get_or_404(ENTITY_MODELS[entity_type], entity_id)
    if is_admin():
        return entity
    if entity_type == DocumentEntityType.RENTER.value:
        ensure_owns(entity.id)
    elif entity_type == DocumentEntityType.CONTRACT.value:
        ensure_owns(entity.renter_id)
    else:
        raise ForbiddenError("Renters can only access documents of their own profile and contracts")
    return entity


def _renter_documents():
    user = current_user()
    renter_id = user.renter_id if user else None
    if renter_id is None:
        return false()
    contract_ids = [c.id for c in Contract.query.filter_by(renter_id=renter_id).all()]
    return or_(
        and_(Document.entity_type == DocumentEntityType.RENTER.value, Document.entity_id == renter_id),
        and_(Document.entity_type == DocumentEntityType.CONTRACT.value, Document.entity_id.in_(contract_ids)),
    )


def _document(document_id):
    document = db.get_or_404(Document, document_id)
    if not is_admin():
        _ensure_entity_access(document.entity_type, document.entity_id)
    return document


@bp.get("/documents")
@jwt_required()
def list_documents():
    """Documents of one entity (?entity_type=&entity_id=), or every document the caller may see"""
    entity_type = parse_choice(_arg(request.args, "entity_type", "entityType"), DocumentEntityType, "entity_type")
    entity_id = _entity_id(_arg(request.args, "entity_id", "entityId"))
    if entity_id is not None and entity_type is None:
        raise ValidationError("entity_type is required with entity_id")

    query = Document.query
    if entity_type and entity_id is not None:
        _ensure_entity_access(entity_type, entity_id)
        query = query.filter(Document.entity_type == entity_type, Document.entity_id == entity_id)
    else:
        if entity_type:
            query = query.filter(Document.entity_type == entity_type)
        if not is_admin():
            query = query.filter(_renter_documents())

    doc_type = parse_choice(request.args.get("type"), DocumentType, "type")
    if doc_type:
        query = query.filter(Document.type == doc_type)

    return paginated(query.order_by(Document.created_at.desc(), Document.id.desc()))


@bp.post("/documents/upload")
@jwt_required()
def upload_document():
    """Multipart upload: file, type, entity_type and entity_id (entityType/entityId also accepted)"""
    form = request.form
    doc_type = parse_choice(form.get("type"), DocumentType, "type") or DocumentType.OTHER.value
    entity_type = parse_choice(_arg(form, "entity_type", "entityType"), DocumentEntityType, "entity_type",
                               required=True)
    entity_id = _entity_id(_arg(form, "entity_id", "entityId"))
    if entity_id is None:
        raise ValidationError("entity_id is required")

    entity = _ensure_entity_access(entity_type, entity_id)
    file = request.files.get("file")
    path, size = storage.store_upload(file, entity_type, entity_id)

    user = current_user()
    document = Document(
        name=file.filename,
        type=doc_type,
        path=path,
        content_type=file.mimetype,
        size=size,
        entity_type=entity_type,
        entity_id=entity_id,
        uploaded_by=user.id if user else None,
    )
    db.session.add(document)
    if entity_type == DocumentEntityType.CONTRACT.value and doc_type == DocumentType.CONTRACT.value:
        entity.document_path = path

    try:
        commit("creation_failed")
    except ApiError:
        storage.discard([path])
        raise

    logger.info("Stored %s document %s for %s %s", doc_type, document.id, entity_type, entity_id)
    return ok(document.serialize(), 201)


@bp.get("/documents/<int:document_id>")
@jwt_required()
def get_document(document_id):
    return ok(_document(document_id).serialize())


@bp.get("/documents/<int:document_id>/download")
@jwt_required()
def download_document(document_id):
    document = _document(document_id)
    if not os.path.exists(document.path):
        raise NotFoundError("Document file not found")
    return send_file(document.path, as_attachment=True, download_name=document.name,
                     mimetype=document.content_type)


@bp.delete("/documents/<int:document_id>")
@jwt_required()
def delete_document(document_id):
    document = _document(document_id)
    if not is_admin() and document.uploaded_by != current_user().id:
        raise ForbiddenError("You can only delete documents you uploaded")

    path = document.path
    if document.entity_type == DocumentEntityType.CONTRACT.value:
        contract = db.session.get(Contract, document.entity_id)
        if contract and contract.document_path == path:
            contract.document_path = None
    db.session.delete(document)
    commit("deletion_failed")
    storage.discard([path])
    return ok(None, message="Document deleted successfully")
