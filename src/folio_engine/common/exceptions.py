"""Folio-Engine exception hierarchy."""


class FolioError(Exception):
    """Base exception for all Folio errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "FOLIO_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class DecryptionError(FolioError):
    """Raised when a sealed envelope is malformed, forged, or no key is configured."""

    def __init__(self, message: str = "Unable to decrypt credential"):
        super().__init__(message, code="DECRYPTION_FAILED")


class IdentityResolutionError(FolioError):
    """Raised when a tenant's API identity cannot be established."""

    status_code = 502

    def __init__(self, message: str = "Unable to resolve API identity"):
        super().__init__(message, code="IDENTITY_RESOLUTION_FAILED")


class ConsentRequiredError(FolioError):
    """Raised when an authorization flow completes without a long-lived secret."""

    status_code = 400

    def __init__(
        self,
        message: str = (
            "No refresh_token received. Try again with 'prompt=consent' or revoke "
            "the previous grant in your Google Account."
        ),
    ):
        super().__init__(message, code="CONSENT_REQUIRED")


class TenantNotFoundError(FolioError):
    status_code = 404

    def __init__(self, message: str = "Tenant not found"):
        super().__init__(message, code="NOT_FOUND")


class DocumentNotFoundError(FolioError):
    status_code = 404

    def __init__(self, message: str = "Document not found"):
        super().__init__(message, code="NOT_FOUND")


class TemplateNotFoundError(FolioError):
    """Raised when the tenant has no usable template for a document type."""

    status_code = 404

    def __init__(self, message: str = "Template not found"):
        super().__init__(message, code="TEMPLATE_NOT_FOUND")


class RenderError(FolioError):
    """Raised when layout or export of a document fails."""

    status_code = 502

    def __init__(self, message: str = "Document rendering failed"):
        super().__init__(message, code="RENDER_FAILED")


class ArtifactStoreError(FolioError):
    """Raised by the artifact store on a missing object or a failed call."""

    status_code = 502

    def __init__(self, message: str = "Artifact store request failed"):
        super().__init__(message, code="STORE_ERROR")


class ArtifactUnavailableError(FolioError):
    """Raised when an artifact is missing and regenerating it also failed."""

    status_code = 502

    def __init__(self, message: str = "Artifact unavailable"):
        super().__init__(message, code="ARTIFACT_UNAVAILABLE")


class DispatchError(FolioError):
    """Raised when the email provider rejects a send."""

    status_code = 502

    def __init__(self, message: str = "send failed"):
        super().__init__(message, code="DISPATCH_FAILED")


class RecipientRequiredError(FolioError):
    """Raised when a send names no recipient and the client has no email."""

    status_code = 400

    def __init__(self, message: str = "Client has no email; provide 'to_email'"):
        super().__init__(message, code="RECIPIENT_REQUIRED")


NOT_FOUND_ERRORS = (TenantNotFoundError, DocumentNotFoundError, TemplateNotFoundError)
