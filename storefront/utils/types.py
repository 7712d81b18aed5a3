from typing import Dict


class SignedHeaderType(Dict):
    signature: str
    timestamp: str
    email: str
