"""
tradeauth - Plan de contrôle authentification & autorisation

Sous-modules:
- core: configuration et taxonomie d'erreurs
- logging: logs JSON structurés avec masquage
- observability: correlation IDs par requête
- credentials: comptes et hachage des mots de passe
- tokens: émission et vérification des JWT
- revocation: blacklist des access tokens et refresh tokens persistés
- rbac: rôles, affectations et résolution des permissions
- session: inscription, login, refresh, logout, verrouillage
- enforcement: filtres gateway (asynchrone) et service (bloquant)
- api: routes HTTP du service d'authentification
"""

__version__ = "0.1.0"
