"""
User Accounts

Sign-up, login and the business profile of the owner. The logged-in user
is kept under the single-record `current_user` key.

Passwords are stored as salted PBKDF2-SHA256 hashes. Accounts written by
older versions with a clear password are rehashed on their next login.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from ledgerbook.audit import AuditLogger
from ledgerbook.models import AuditEventBuilder, User
from ledgerbook.services.storage import Collection, CollectionStore


PBKDF2_ITERATIONS = 120_000
PROFILE_FIELDS = ("business_name", "phone", "address", "gst_number")


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Return `pbkdf2_sha256$<iterations>$<salt>$<hex digest>`."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    )
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserAccounts:
    """Owns the `users` collection and the `current_user` record."""
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
    
    def _load(self) -> list[User]:
        return self._store.load(Collection.USERS, User)
    
    def signup(self, email: str, password: str, business_name: str) -> Optional[User]:
        """
        Create an account and log it in.
        
        Returns:
            The new user, or None if the email is already registered
        """
        email = normalize_email(email)
        users = self._load()
        if any(normalize_email(u.email) == email for u in users):
            return None
        
        user = User(
            email=email,
            password_hash=hash_password(password),
            business_name=business_name,
        )
        with self._store.unit_of_work():
            users.append(user)
            self._store.save(Collection.USERS, users)
            self._store.save_current_user(user)
        
        self._audit_logger.log(
            AuditEventBuilder.user_signed_up(user_id=user.id, email=email)
        )
        return user
    
    def _check_password(self, user: User, password: str) -> bool:
        if user.password_hash:
            return verify_password(password, user.password_hash)
        # Records from older versions carry the clear password instead.
        if user.password is None:
            return False
        return hmac.compare_digest(user.password.encode("utf-8"), password.encode("utf-8"))
    
    def login(self, email: str, password: str) -> Optional[User]:
        """
        Returns the user on valid credentials, None otherwise.
        
        A user still holding a clear password is upgraded to a hash here.
        """
        email = normalize_email(email)
        users = self._load()
        for idx, user in enumerate(users):
            if normalize_email(user.email) != email:
                continue
            if not self._check_password(user, password):
                return None
            
            with self._store.unit_of_work():
                if not user.password_hash:
                    user = user.model_copy(
                        update={"password_hash": hash_password(password), "password": None}
                    )
                    users[idx] = user
                    self._store.save(Collection.USERS, users)
                self._store.save_current_user(user)
            
            self._audit_logger.log(AuditEventBuilder.user_logged_in(user_id=user.id))
            return user
        return None
    
    def logout(self) -> None:
        self._store.clear_current_user()
        self._audit_logger.log(AuditEventBuilder.user_logged_out())
    
    def current_user(self) -> Optional[User]:
        return self._store.load_current_user()
    
    def get_user(self, user_id: str) -> Optional[User]:
        for user in self._load():
            if user.id == user_id:
                return user
        return None
    
    def update_profile(
        self,
        *,
        business_name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        gst_number: Optional[str] = None,
    ) -> Optional[User]:
        """
        Update the logged-in user's business profile.
        
        Returns:
            The updated user, or None when nobody is logged in or the
            logged-in user no longer exists
        """
        current = self.current_user()
        if current is None:
            return None
        
        values = dict(zip(PROFILE_FIELDS, (business_name, phone, address, gst_number)))
        changes = {k: v for k, v in values.items() if v is not None}
        
        with self._store.unit_of_work():
            users = self._load()
            for idx, user in enumerate(users):
                if user.id != current.id:
                    continue
                updated = User.model_validate({**user.model_dump(), **changes})
                users[idx] = updated
                self._store.save(Collection.USERS, users)
                self._store.save_current_user(updated)
                break
            else:
                return None
        
        self._audit_logger.log(
            AuditEventBuilder.profile_updated(user_id=updated.id, fields=sorted(changes))
        )
        return updated
