"""Unit tests for bearer extraction and role authorization."""
import pytest

from models.user import UserRole
from services.errors import AuthenticationError, ForbiddenError
from utils.decorators import authorize, extract_bearer_token
from utils.security import AuthenticatedIdentity

MODERATOR = AuthenticatedIdentity(identity_id="u1", email="mod@x.com", role="moderator")


class TestExtractBearerToken:
    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "abc", "Basic dXNlcjpwYXNz", "Bearer", "Bearer    "])
    def test_rejects(self, header):
        with pytest.raises(AuthenticationError):
            extract_bearer_token(header)


class TestAuthorize:
    def test_allowed_role(self):
        authorize(MODERATOR, [UserRole.ADMIN, UserRole.MODERATOR])

    def test_plain_string_roles(self):
        authorize(MODERATOR, {"moderator"})

    def test_role_not_permitted(self):
        with pytest.raises(ForbiddenError):
            authorize(MODERATOR, [UserRole.ADMIN])

    def test_requires_identity(self):
        with pytest.raises(AuthenticationError):
            authorize(None, [UserRole.ADMIN])
