"""
User directory and session tests.

Verifies:
- Role/store invariants and password rules on create and update
- User deletion cascades to submitted requests and sessions
- Session tokens are hashed, validated and revocable
"""

from datetime import timedelta

import pytest

from stockroom.extensions import db
from stockroom.models import SessionToken, StockRequest, User
from stockroom.services import request_service, session_service, user_service
from stockroom.services.user_service import PasswordValidationError
from stockroom.validation import ConflictError, NotFoundError, ValidationError


class TestCreateUser:

    def test_store_manager_keeps_location(self, sydney_manager):
        assert sydney_manager.role == "store-manager"
        assert sydney_manager.store_location == "Sydney"

    def test_location_cleared_for_other_roles(self):
        user = user_service.create_user(
            name="Wendy", email="wendy@stockapp.com", role="warehouse-manager", store_location="Sydney",
        )
        assert user.store_location is None

    def test_store_manager_requires_location(self):
        with pytest.raises(ValidationError):
            user_service.create_user(name="Sam", email="sam@stockapp.com", role="store-manager")

    def test_unknown_role(self):
        with pytest.raises(ValidationError):
            user_service.create_user(name="Sam", email="sam@stockapp.com", role="cashier")

    def test_email_normalized_and_unique(self, admin):
        with pytest.raises(ConflictError):
            user_service.create_user(name="Dup", email="  ADMIN@stockapp.com ", role="admin")

    @pytest.mark.parametrize("email", ["", "not-an-email", None])
    def test_invalid_email(self, email):
        with pytest.raises(ValidationError):
            user_service.create_user(name="Sam", email=email, role="admin")

    def test_short_password(self):
        with pytest.raises(PasswordValidationError):
            user_service.create_user(name="Sam", email="sam@stockapp.com", role="admin", password="short")
        assert db.session.query(User).count() == 0

    def test_password_is_hashed(self, admin):
        assert admin.password_hash
        assert admin.password_hash != "Password123!"
        assert user_service.verify_password("Password123!", admin.password_hash)
        assert not user_service.verify_password("wrong-password", admin.password_hash)

    def test_user_without_password_cannot_authenticate(self):
        user_service.create_user(name="Nopass", email="nopass@stockapp.com", role="admin")
        assert user_service.authenticate("nopass@stockapp.com", "anything-at-all") is None


class TestUpdateUser:

    def test_partial_update(self, sydney_manager):
        updated = user_service.update_user(sydney_manager.id, {"name": "Syd"})
        assert updated.name == "Syd"
        assert updated.store_location == "Sydney"

    def test_role_change_clears_location(self, sydney_manager):
        updated = user_service.update_user(sydney_manager.id, {"role": "warehouse-manager"})
        assert updated.role == "warehouse-manager"
        assert updated.store_location is None

    def test_role_change_to_store_manager_needs_location(self, warehouse_manager):
        with pytest.raises(ValidationError):
            user_service.update_user(warehouse_manager.id, {"role": "store-manager"})

        updated = user_service.update_user(
            warehouse_manager.id, {"role": "store-manager", "storeLocation": "Perth"},
        )
        assert updated.store_location == "Perth"

    def test_password_change(self, admin):
        user_service.update_user(admin.id, {"password": "NewPassword456"})
        assert user_service.authenticate("admin@stockapp.com", "NewPassword456") is not None
        assert user_service.authenticate("admin@stockapp.com", "Password123!") is None

    def test_unknown_field(self, admin):
        with pytest.raises(ValidationError):
            user_service.update_user(admin.id, {"isSuperuser": True})

    def test_email_taken(self, admin, warehouse_manager):
        with pytest.raises(ConflictError):
            user_service.update_user(warehouse_manager.id, {"email": "admin@stockapp.com"})

    def test_unknown_user(self):
        with pytest.raises(NotFoundError):
            user_service.update_user(9999, {"name": "Ghost"})


class TestDeleteUser:

    def test_deletes_submitted_requests_and_sessions(self, sydney_manager, warehouse_manager, widget):
        own = request_service.create_request(
            store_location="Sydney",
            items=[{"itemId": widget.id, "requestedQuantity": 1}],
            actor=sydney_manager,
        )
        session_service.create_session(sydney_manager.id)
        own_id = own.id
        user_id = sydney_manager.id

        user_service.delete_user(user_id)

        assert db.session.get(User, user_id) is None
        assert db.session.get(StockRequest, own_id) is None
        assert db.session.query(SessionToken).filter_by(user_id=user_id).count() == 0

    def test_processed_requests_are_kept(self, sydney_manager, warehouse_manager, widget):
        req = request_service.create_request(
            store_location="Sydney",
            items=[{"itemId": widget.id, "requestedQuantity": 1}],
            actor=sydney_manager,
        )
        request_service.accept_request(req.id, actor=warehouse_manager)

        user_service.delete_user(warehouse_manager.id)

        kept = request_service.get_request(req.id)
        assert kept.status == "accepted"
        assert kept.processed_by is None


class TestSessions:

    def test_token_is_stored_hashed(self, admin):
        session, token = session_service.create_session(admin.id)
        assert session.token_hash == session_service.hash_token(token)
        assert session.token_hash != token

    def test_validate_and_revoke(self, admin):
        _, token = session_service.create_session(admin.id)

        context = session_service.validate_session(token)
        assert context is not None
        assert context.user.id == admin.id

        assert session_service.revoke_session(token) is True
        assert session_service.validate_session(token) is None
        assert session_service.revoke_session(token) is False

    def test_unknown_token(self):
        assert session_service.validate_session("not-a-token") is None
        assert session_service.validate_session("") is None

    def test_expired_session(self, admin):
        session, token = session_service.create_session(admin.id)
        session.expires_at = session.expires_at - timedelta(days=2)
        db.session.commit()

        assert session_service.validate_session(token) is None

    def test_idle_session_is_revoked(self, admin):
        session, token = session_service.create_session(admin.id)
        session.last_used_at = session.last_used_at - timedelta(hours=9)
        db.session.commit()

        assert session_service.validate_session(token) is None
        db.session.refresh(session)
        assert session.is_revoked
        assert session.revoked_reason == "Idle timeout"
