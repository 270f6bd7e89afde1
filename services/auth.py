from typing import Dict, Optional

# Static allow-list, not a security boundary.
AUTHORIZED_USERS = [
    {"email": "admin@boomart.com", "pin": "1234", "name": "Administrador"},
    {"email": "ventas@boomart.com", "pin": "0000", "name": "Vendedor"},
]

def authenticate(email: str, pin: str) -> Optional[Dict[str, str]]:
    for u in AUTHORIZED_USERS:
        if u["email"] == email and u["pin"] == pin:
            return {"email": u["email"], "name": u["name"]}
    return None
