"""
Account Service - admin/user accounts, ward representatives and officers.

All three account kinds store a bcrypt passwordHash that never leaves this
module: every returned account goes through strip_secrets(). Logins return
a signed access token whose `sub` is the account document id.
"""

from firebase_admin import firestore
from google.api_core import exceptions as gcloud_exceptions
from typing import Dict, List, Optional
import logging

from app.config.firebase import get_db
from app.core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from app.services.population import populate_ids
from app.utils.firestore_helpers import (
    ISSUES, OFFICERS, USERS, WARD_REPS,
    find_one, get_snapshot, guarded_update, new_document_id, require_valid_id,
    snapshot_to_dict, utcnow,
)
from app.utils.query_builder import ListQuery
from app.utils.security import (
    bearer_token, create_access_token, decode_access_token,
    hash_password, strip_secrets, verify_password,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."


def _normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email else email


def _prepare_changes(fields: Dict) -> Dict:
    """Drop unset values and replace a plain password with its hash."""
    changes = {key: value for key, value in fields.items() if value is not None}
    password = changes.pop("password", None)
    if password:
        changes["passwordHash"] = hash_password(password)
    return changes


class _AccountStore:
    """Shared persistence for one account collection."""

    label = "Account"
    collection_name = ""
    role = ""

    def __init__(self, db=None):
        self.db = db or get_db()
        self.accounts = self.db.collection(self.collection_name)

    def _snapshot(self, account_id: str):
        require_valid_id(account_id, f"{self.label.lower()} id")
        return get_snapshot(self.accounts, account_id, self.label)

    def _ensure_unique(self, field: str, value, exclude_id: Optional[str] = None) -> None:
        existing = find_one(self.accounts, field, value)
        if existing and existing["id"] != exclude_id:
            raise ConflictError(f"{self.label} with this {field} already exists.")

    def _insert(self, account: Dict) -> Dict:
        account_id = new_document_id()
        try:
            self.accounts.document(account_id).create(account)
        except gcloud_exceptions.AlreadyExists:
            raise ConflictError(f"{self.label} already exists.")
        return {"id": account_id, **account}

    def _token_response(self, account: Dict, message: str) -> Dict:
        token = create_access_token(account["id"], account.get("role") or self.role)
        return {"message": message, "token": token, "account": strip_secrets(account)}

    def login(self, email: str, password: str) -> Dict:
        """
        Authenticate by email and password.

        Raises:
            AuthError: unknown email or wrong password (same message for both)
        """
        account = find_one(self.accounts, "email", _normalize_email(email))
        if account is None or not verify_password(password, account.get("passwordHash")):
            logger.info(f"{self.label} login failed for {email}")
            raise AuthError(INVALID_CREDENTIALS)
        logger.info(f"{self.label} {account['id']} logged in")
        return self._token_response(account, "Login successful")

    def get(self, account_id: str) -> Dict:
        return strip_secrets(snapshot_to_dict(self._snapshot(account_id)))

    def list_accounts(self, page: Optional[int] = None, limit: Optional[int] = None,
                      sort_by: Optional[str] = None, sort_dir: Optional[str] = None) -> Dict:
        query = ListQuery(self.collection_name).order(sort_by, sort_dir).paginate(page, limit)
        return query.run(self.db, project=strip_secrets)

    def delete(self, account_id: str) -> None:
        snapshot = self._snapshot(account_id)
        snapshot.reference.delete()
        logger.warning(f"{self.label} {account_id} deleted")


class AdminService(_AccountStore):
    """Admin and platform user accounts (`users` collection)."""

    label = "User"
    collection_name = USERS
    role = "admin"

    def register(self, username: str, email: str, password: str, roles: Optional[List[str]] = None) -> Dict:
        email = _normalize_email(email)
        username = username.strip()
        self._ensure_unique("email", email)
        self._ensure_unique("username", username)

        now = utcnow()
        account = self._insert({
            "username": username,
            "email": email,
            "passwordHash": hash_password(password),
            "roles": roles or ["user"],
            "createdAt": now,
            "updatedAt": now,
        })
        logger.info(f"User registered: {account['id']} ({email})")
        return self._token_response(account, "User registered successfully")

    def _token_response(self, account: Dict, message: str) -> Dict:
        roles = account.get("roles") or ["user"]
        token = create_access_token(account["id"], roles[0], {"roles": roles})
        return {"message": message, "token": token, "account": strip_secrets(account)}

    def me(self, authorization: Optional[str]) -> Dict:
        """Resolve the account behind an `Authorization: Bearer` header."""
        claims = decode_access_token(bearer_token(authorization))
        account_id = claims.get("sub")
        try:
            return self.get(account_id)
        except (NotFoundError, ValidationError):
            raise AuthError("Account for this token no longer exists.")

    def update(self, account_id: str, fields: Dict) -> Dict:
        snapshot = self._snapshot(account_id)
        changes = _prepare_changes(fields)
        if "email" in changes:
            changes["email"] = _normalize_email(changes["email"])
            self._ensure_unique("email", changes["email"], exclude_id=account_id)
        if "username" in changes:
            self._ensure_unique("username", changes["username"], exclude_id=account_id)
        changes["updatedAt"] = utcnow()

        guarded_update(self.db, snapshot, changes, self.label)
        account = snapshot_to_dict(snapshot)
        account.update(changes)
        logger.info(f"User {account_id} updated")
        return strip_secrets(account)


class WardRepService(_AccountStore):
    """Ward representatives (`ward_reps` collection)."""

    label = "Ward representative"
    collection_name = WARD_REPS
    role = "wardRep"

    # identity fields fixed at registration
    IMMUTABLE_FIELDS = frozenset({"wardLeaderId", "email", "role", "verifiedIssues", "totalResolvedIssues"})

    def register(self, fields: Dict) -> Dict:
        email = _normalize_email(fields["email"])
        self._ensure_unique("wardLeaderId", fields["wardLeaderId"])
        self._ensure_unique("email", email)

        now = utcnow()
        account = {key: value for key, value in fields.items() if key != "password"}
        account.update({
            "email": email,
            "passwordHash": hash_password(fields["password"]),
            "role": self.role,
            "verifiedIssues": [],
            "totalResolvedIssues": 0,
            "createdAt": now,
            "updatedAt": now,
        })
        account = self._insert(account)
        logger.info(f"Ward representative registered: {account['id']} ({account['wardLeaderId']})")
        return self._token_response(account, "Ward representative registered successfully")

    def get(self, account_id: str) -> Dict:
        rep = super().get(account_id)
        rep["verifiedIssues"] = populate_ids(self.db, rep.get("verifiedIssues"), ISSUES, ("title", "status"))
        return rep

    def update(self, account_id: str, fields: Dict) -> Dict:
        snapshot = self._snapshot(account_id)
        changes = {
            key: value for key, value in _prepare_changes(fields).items()
            if key not in self.IMMUTABLE_FIELDS
        }
        changes["updatedAt"] = utcnow()

        guarded_update(self.db, snapshot, changes, self.label)
        rep = snapshot_to_dict(snapshot)
        rep.update(changes)
        logger.info(f"Ward representative {account_id} updated: {sorted(changes)}")
        return strip_secrets(rep)

    def add_verified_issue(self, rep_id: Optional[str], issue_id: Optional[str]) -> Dict:
        """
        Record an issue as verified by this representative.

        Raises:
            ValidationError: rep or issue id missing or malformed
            NotFoundError: rep or issue does not exist
            ConflictError: issue already in verifiedIssues
        """
        require_valid_id(rep_id, "repId")
        require_valid_id(issue_id, "issueId")
        snapshot = get_snapshot(self.accounts, rep_id, self.label)
        get_snapshot(self.db.collection(ISSUES), issue_id, "Issue")

        verified = list((snapshot.to_dict() or {}).get("verifiedIssues") or [])
        if issue_id in verified:
            raise ConflictError("Issue already verified by this representative.")
        verified.append(issue_id)

        changes = {
            "verifiedIssues": verified,
            "totalResolvedIssues": len(verified),
            "updatedAt": utcnow(),
        }
        guarded_update(self.db, snapshot, changes, self.label)
        logger.info(f"Ward representative {rep_id} verified issue {issue_id}")
        return {"verifiedIssues": verified, "totalResolvedIssues": len(verified)}

    def increment_resolved(self, rep_id: str, delta: int = 1) -> Dict:
        require_valid_id(rep_id, "repId")
        rep_ref = self.accounts.document(rep_id)
        try:
            rep_ref.update({"totalResolvedIssues": firestore.Increment(delta), "updatedAt": utcnow()})
        except gcloud_exceptions.NotFound:
            raise NotFoundError(f"{self.label} not found.")
        total = rep_ref.get(field_paths=["totalResolvedIssues"]).get("totalResolvedIssues")
        return {"totalResolvedIssues": total}


class OfficerService(_AccountStore):
    """Municipal officers (`officers` collection)."""

    label = "Officer"
    collection_name = OFFICERS
    role = "officer"

    def create(self, fields: Dict) -> Dict:
        email = _normalize_email(fields["email"])
        self._ensure_unique("email", email)

        now = utcnow()
        officer = {key: value for key, value in fields.items() if key != "password"}
        officer.update({
            "email": email,
            "passwordHash": hash_password(fields["password"]),
            "role": self.role,
            "wardsManaged": fields.get("wardsManaged") or [],
            "assignedIssues": [],
            "budgetApproved": 0,
            "resolvedCount": 0,
            "createdAt": now,
            "updatedAt": now,
        })
        officer = self._insert(officer)
        logger.info(f"Officer created: {officer['id']} ({email})")
        return strip_secrets(officer)


# Global service instances (singleton pattern)
_admin_service = None
_ward_rep_service = None
_officer_service = None


def get_admin_service() -> AdminService:
    global _admin_service
    if _admin_service is None:
        _admin_service = AdminService()
    return _admin_service


def get_ward_rep_service() -> WardRepService:
    global _ward_rep_service
    if _ward_rep_service is None:
        _ward_rep_service = WardRepService()
    return _ward_rep_service


def get_officer_service() -> OfficerService:
    global _officer_service
    if _officer_service is None:
        _officer_service = OfficerService()
    return _officer_service
