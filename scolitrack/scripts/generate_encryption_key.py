"""
Print a new random ENCRYPTION_KEY (base64, 32 bytes) for the .env file.
Run with: python -m scolitrack.scripts.generate_encryption_key
"""

import base64
import os

from scolitrack.core.encryption import KEY_SIZE, validate_encryption_key


def generate_key() -> str:
    key = base64.b64encode(os.urandom(KEY_SIZE)).decode("ascii")
    validate_encryption_key(key)
    return key


if __name__ == "__main__":
    print(f"ENCRYPTION_KEY={generate_key()}")
