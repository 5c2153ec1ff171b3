"""
Tests for user accounts.
"""

import json

import pytest

from ledgerbook.ledger import hash_password, verify_password


class TestPasswords:
    """Tests for password hashing."""
    
    def test_hash_verifies(self):
        """Test that a hash verifies its own password only."""
        encoded = hash_password("s3cret")
        assert verify_password("s3cret", encoded)
        assert not verify_password("wrong", encoded)
    
    def test_hash_is_salted(self):
        """Test that the same password hashes differently."""
        assert hash_password("s3cret") != hash_password("s3cret")
    
    def test_malformed_hash_never_verifies(self):
        """Test that clear or empty stored values are rejected."""
        assert not verify_password("s3cret", "s3cret")
        assert not verify_password("", "")


class TestUserAccounts:
    """Tests for sign-up, login and profile."""
    
    def test_signup_logs_in(self, accounts):
        """Test that signing up sets the current user."""
        user = accounts.signup("Owner@Shop.in ", "pw", "Asha Stores")
        assert user.email == "owner@shop.in"
        assert user.business_name == "Asha Stores"
        assert accounts.current_user().id == user.id
        assert "pw" not in user.password_hash.split("$")
    
    def test_duplicate_email_rejected(self, accounts):
        """Test that an email can only register once."""
        accounts.signup("owner@shop.in", "pw", "A")
        assert accounts.signup("OWNER@shop.in", "other", "B") is None
    
    def test_login(self, accounts):
        """Test login with good and bad credentials."""
        user = accounts.signup("owner@shop.in", "pw", "A")
        accounts.logout()
        assert accounts.current_user() is None
        assert accounts.login("owner@shop.in", "bad") is None
        assert accounts.login("nobody@shop.in", "pw") is None
        assert accounts.login("owner@shop.in", "pw").id == user.id
        assert accounts.current_user().id == user.id
    
    def test_update_profile(self, accounts):
        """Test updating the business profile."""
        user = accounts.signup("owner@shop.in", "pw", "A")
        updated = accounts.update_profile(phone="98765", gst_number="29ABCDE1234F1Z5")
        assert updated.business_name == "A"
        assert updated.phone == "98765"
        assert accounts.get_user(user.id).gst_number == "29ABCDE1234F1Z5"
        assert accounts.current_user().phone == "98765"
    
    def test_update_profile_requires_login(self, accounts):
        """Test the soft failure when nobody is logged in."""
        accounts.signup("owner@shop.in", "pw", "A")
        accounts.logout()
        assert accounts.update_profile(phone="1") is None


class TestLegacyPasswords:
    """Tests for accounts written with a clear password by older versions."""
    
    @pytest.fixture
    def legacy_user(self, kv):
        kv.write("kb_users", json.dumps([
            {"id": "u1", "email": "owner@shop.in", "password": "pw", "businessName": "A"},
        ]))
        return "u1"
    
    def test_login_with_clear_password(self, accounts, legacy_user):
        """Test that the stored clear password is accepted once."""
        assert accounts.login("owner@shop.in", "bad") is None
        user = accounts.login("owner@shop.in", "pw")
        assert user.id == legacy_user
        assert accounts.current_user().id == legacy_user
    
    def test_password_is_rehashed(self, accounts, kv, legacy_user):
        """Test that a successful login replaces the clear password with a hash."""
        accounts.login("owner@shop.in", "pw")
        record = json.loads(kv.read("kb_users"))[0]
        assert "password" not in record
        assert verify_password("pw", record["passwordHash"])
        assert "password" not in json.loads(kv.read("kb_current_user"))
        
        accounts.logout()
        assert accounts.login("owner@shop.in", "pw").id == legacy_user
    
    def test_no_password_at_all(self, accounts, kv):
        """Test that a user with neither hash nor password cannot log in."""
        kv.write("kb_users", json.dumps([{"id": "u2", "email": "x@shop.in"}]))
        assert accounts.login("x@shop.in", "") is None
