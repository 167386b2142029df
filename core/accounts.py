# =============================================================================
# core/accounts.py - Account and permission store
# =============================================================================

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Any, List, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from core.errors import AccountError, AccountNotFoundError
from core.permissions import Permissions, UserSession, ADMIN_ROLE


class AccountStore:
    """
    User accounts with hashed passwords and feature permissions, kept in a JSON file.

    Records look like the original user table: id, username, email, password
    (hash), role and a nested permissions object.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._users: List[Dict[str, Any]] = self._load()

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            self.logger.info(f"Account file {self.path} not found, starting empty")
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as file:
                return json.load(file).get('users', [])
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to read account file {self.path}: {e}")
            raise AccountError(f"Account file {self.path} is unreadable") from e

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as file:
            json.dump({'users': self._users}, file, indent=2)

    @staticmethod
    def public_view(user: Dict[str, Any]) -> Dict[str, Any]:
        """Account record without the password hash"""
        return {key: value for key, value in user.items() if key != 'password'}

    def list_users(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [self.public_view(user) for user in self._users]

    def get_user(self, user_id: int) -> Dict[str, Any]:
        with self._lock:
            return self.public_view(self._find(user_id))

    def create_user(self, username: str, email: str, password: str, role: str = 'user',
                    permissions: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Create an account; username and email must be unique"""
        with self._lock:
            user = self._insert_user(username, email, password, role, permissions)
        return self.public_view(user)

    def _insert_user(self, username: str, email: str, password: str, role: str,
                     permissions: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        # Caller holds the lock
        if not username or not email or not password:
            raise AccountError("username, email and password are required")

        self._check_unique(username, email)
        user = {
            'id': max((u['id'] for u in self._users), default=0) + 1,
            'username': username,
            'email': email,
            'password': generate_password_hash(password),
            'role': role or 'user',
            'permissions': Permissions.from_record(permissions).to_record(),
        }
        self._users.append(user)
        self._save()

        self.logger.info(f"Created account {username} (role: {user['role']})")
        return user

    def update_user(self, user_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update username, email, password, role or permissions of an account"""
        with self._lock:
            user = self._find(user_id)
            if 'username' in changes or 'email' in changes:
                self._check_unique(changes.get('username'), changes.get('email'), exclude_id=user_id)

            for key in ('username', 'email', 'role'):
                if changes.get(key):
                    user[key] = changes[key]
            if changes.get('password'):
                user['password'] = generate_password_hash(changes['password'])
            if 'permissions' in changes:
                user['permissions'] = Permissions.from_record(changes['permissions']).to_record()
            self._save()

        self.logger.info(f"Updated account {user['username']}")
        return self.public_view(user)

    def delete_user(self, user_id: int) -> None:
        with self._lock:
            user = self._find(user_id)
            self._users.remove(user)
            self._save()
        self.logger.info(f"Deleted account {user['username']}")

    def authenticate(self, username: str, password: str) -> Optional[UserSession]:
        """Check credentials; returns the session for a match, None otherwise"""
        with self._lock:
            user = next((u for u in self._users if u['username'] == username), None)

        if not user or not password or not check_password_hash(user['password'], password):
            self.logger.warning(f"Login failed for {username}")
            return None

        self.logger.info(f"Login successful for user: {username}")
        return UserSession(
            username=user['username'],
            role=user.get('role', 'user'),
            permissions=Permissions.from_record(user.get('permissions')),
            user_id=user['id']
        )

    def ensure_admin(self, username: str, email: str, password: str) -> bool:
        """Seed an admin account when the store is empty"""
        with self._lock:
            if self._users:
                return False
            self._insert_user(username, email, password, ADMIN_ROLE,
                              Permissions.all_granted().to_record())
        return True

    def _find(self, user_id: int) -> Dict[str, Any]:
        for user in self._users:
            if user['id'] == user_id:
                return user
        raise AccountNotFoundError(f"User {user_id} not found")

    def _check_unique(self, username: Optional[str], email: Optional[str],
                      exclude_id: Optional[int] = None) -> None:
        for user in self._users:
            if user['id'] == exclude_id:
                continue
            if username and user['username'] == username:
                raise AccountError(f"Username {username} already exists")
            if email and user['email'] == email:
                raise AccountError(f"Email {email} already exists")
