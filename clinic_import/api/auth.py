from abc import ABC, abstractmethod

from fastapi import Request

from clinic_import.upload.models import ClinicContext


class AuthenticationError(Exception):
    """Raised when a request carries no usable clinic context."""


class BaseAuthProvider(ABC):
    """Contract for resolving the authenticated clinic user of a request."""

    @abstractmethod
    def authenticate(self, request: Request) -> ClinicContext:
        """Raises:
        AuthenticationError: if the request is not authenticated.
        """


class GatewayHeaderAuthProvider(BaseAuthProvider):
    """Trusts identity headers set by the gateway in front of this service."""

    CLINIC_HEADER = "X-Clinic-Id"
    USER_HEADER = "X-User-Id"
    NAME_HEADER = "X-User-Name"

    def authenticate(self, request: Request) -> ClinicContext:
        clinic_id = request.headers.get(self.CLINIC_HEADER, "").strip()
        user_id = request.headers.get(self.USER_HEADER, "").strip()
        if not clinic_id or not user_id:
            raise AuthenticationError("Authentication required")
        return ClinicContext(
            clinic_id=clinic_id,
            user_id=user_id,
            user_name=request.headers.get(self.NAME_HEADER, "").strip(),
        )


def get_clinic(request: Request) -> ClinicContext:
    """FastAPI dependency resolving the caller through the app's auth provider."""
    provider: BaseAuthProvider = request.app.state.auth_provider
    return provider.authenticate(request)
