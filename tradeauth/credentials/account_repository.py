"""
Credentials: Account Repository

Stockage en mémoire des identifiants, indexé par id et par email.
"""

import threading
from typing import Dict, List, Optional

from .interfaces import AccountCredential, IAccountRepository


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class InMemoryAccountRepository(IAccountRepository):
    """Dépôt de comptes en mémoire (tests et développement mono-processus)."""

    def __init__(self) -> None:
        self._accounts: Dict[str, AccountCredential] = {}
        self._by_email: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, account_id: str) -> Optional[AccountCredential]:
        return self._accounts.get(account_id)

    def find_by_email(self, email: str) -> Optional[AccountCredential]:
        account_id = self._by_email.get(normalize_email(email))
        if account_id is None:
            return None
        return self._accounts.get(account_id)

    def exists_by_email(self, email: str) -> bool:
        return normalize_email(email) in self._by_email

    def save(self, account: AccountCredential) -> AccountCredential:
        """
        Raises:
            ValueError: Si l'email appartient déjà à un autre compte
        """
        email = normalize_email(account.email)
        with self._lock:
            owner = self._by_email.get(email)
            if owner is not None and owner != account.account_id:
                raise ValueError(f"Email already bound to another account: {email}")

            stale = [e for e, owner_id in self._by_email.items() if owner_id == account.account_id and e != email]
            for old_email in stale:
                del self._by_email[old_email]

            account.email = email
            self._accounts[account.account_id] = account
            self._by_email[email] = account.account_id
        return account

    def list_all(self) -> List[AccountCredential]:
        return list(self._accounts.values())
