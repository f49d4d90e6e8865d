"""
Document identity endpoints: assign, verify and void document numbers and access keys.
"""
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.access_keys import AccessKeyComponentsResponse
from app.schemas.documents import (
    DocumentIdentityRequest, DocumentIdentityVerifyRequest, DocumentIdentityVerifyResponse,
    IssuedDocumentResponse
)
from app.services.document_identity_service import DocumentIdentityService


router = APIRouter()


@router.post(
    "/tenants/{tenant_id}/documents/identity",
    response_model=IssuedDocumentResponse,
    status_code=status.HTTP_201_CREATED
)
def assign_document_identity(
    tenant_id: UUID,
    request: DocumentIdentityRequest,
    db: Session = Depends(get_db)
):
    """
    Assign the next document number and a new access key.

    The sequential is reserved and the identity stored in one transaction;
    if anything fails nothing is consumed.
    """
    document = DocumentIdentityService(db).assign_identity(
        tenant_id=tenant_id,
        emission_point_id=request.punto_emision_id,
        document_type=request.tipo_documento,
        issue_date=request.fecha_emision,
        emission_type=request.tipo_emision
    )
    db.commit()
    db.refresh(document)
    return document


@router.get("/tenants/{tenant_id}/documents/{document_id}", response_model=IssuedDocumentResponse)
def get_document(
    tenant_id: UUID,
    document_id: UUID,
    db: Session = Depends(get_db)
):
    """Retrieve an issued document identity."""
    return DocumentIdentityService(db).get_document(tenant_id, document_id)


@router.post("/documents/identity/verify", response_model=DocumentIdentityVerifyResponse)
def verify_document_identity(request: DocumentIdentityVerifyRequest):
    """
    Check that an access key embeds the given document number.

    A mismatch is reported as 409 DOCUMENT_IDENTITY_CORRUPT.
    """
    components = DocumentIdentityService.verify_identity(request.numero_documento, request.clave_acceso)
    return DocumentIdentityVerifyResponse(
        numero_documento=request.numero_documento,
        componentes=AccessKeyComponentsResponse.from_components(components)
    )


@router.get(
    "/tenants/{tenant_id}/documents/{document_id}/verify",
    response_model=DocumentIdentityVerifyResponse
)
def verify_stored_document(
    tenant_id: UUID,
    document_id: UUID,
    db: Session = Depends(get_db)
):
    """Re-verify a stored document identity against its record."""
    service = DocumentIdentityService(db)
    components = service.verify_document(tenant_id, document_id)
    document = service.get_document(tenant_id, document_id)
    return DocumentIdentityVerifyResponse(
        numero_documento=document.numero_documento,
        componentes=AccessKeyComponentsResponse.from_components(components)
    )


@router.post("/tenants/{tenant_id}/documents/{document_id}/void", response_model=IssuedDocumentResponse)
def void_document(
    tenant_id: UUID,
    document_id: UUID,
    db: Session = Depends(get_db)
):
    """Void a document; its number and access key remain assigned."""
    document = DocumentIdentityService(db).void_document(tenant_id, document_id)
    db.commit()
    db.refresh(document)
    return document
