"""
Transparent field-level encryption for sensitive columns.

Values are stored as "ENC:" + base64(nonce || AES-256-GCM ciphertext). Writes
must encrypt or fail; reads decrypt marked values and fall back to the raw
value when decryption fails, so an unreadable row never breaks a listing.
"""

import base64
import binascii
import logging
import os
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from scolitrack.core.exceptions import EncryptionFailed
from scolitrack.database.repository import Filters, TableRepository

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "ENC:"
NONCE_SIZE = 12
KEY_SIZE = 32


class EntityKind(str, Enum):
    USER = "User"
    ESTABLISHMENT = "Establishment"
    CLASSROOM_PERSONNEL = "ClassRoomPersonnel"
    COMMISSION_MEMBER = "CommissionMember"


# Columns encrypted at rest, per entity kind
SENSITIVE_FIELDS: Dict[EntityKind, Tuple[str, ...]] = {
    EntityKind.USER: ("name",),
}

# Relations embedding a sensitive entity one level below a parent record
EMBEDDED_SENSITIVE_RELATIONS: Dict[EntityKind, Dict[str, EntityKind]] = {
    EntityKind.ESTABLISHMENT: {"admin": EntityKind.USER},
    EntityKind.CLASSROOM_PERSONNEL: {"user": EntityKind.USER},
    EntityKind.COMMISSION_MEMBER: {"user": EntityKind.USER},
}


def validate_encryption_key(key_b64: str) -> bytes:
    """
    Decode the base64 encryption key and check it is usable for AES-256.

    Raises:
        ValueError: if the key is missing, not base64 or not 32 bytes long
    """
    if not key_b64:
        raise ValueError(
            "ENCRYPTION_KEY is required. "
            "Generate one with: python -m scolitrack.scripts.generate_encryption_key"
        )
    try:
        key = base64.b64decode(key_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"ENCRYPTION_KEY must be valid base64: {e}")
    if len(key) != KEY_SIZE:
        raise ValueError(
            f"ENCRYPTION_KEY must decode to exactly {KEY_SIZE} bytes, got {len(key)}"
        )
    return key


class FieldCipher:
    """AES-256-GCM cipher bound to the process-wide key"""

    def __init__(self, key_b64: str):
        self._aead = AESGCM(validate_encryption_key(key_b64))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Raises:
            ValueError: on malformed input or when authentication fails
        """
        try:
            data = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Ciphertext is not valid base64: {e}")
        if len(data) <= NONCE_SIZE:
            raise ValueError("Ciphertext is too short")
        try:
            plaintext = self._aead.decrypt(data[:NONCE_SIZE], data[NONCE_SIZE:], None)
        except InvalidTag:
            raise ValueError("Ciphertext authentication failed")
        return plaintext.decode("utf-8")


def is_encrypted(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)


class FieldEncryptionInterceptor:
    def __init__(
        self,
        cipher: FieldCipher,
        sensitive_fields: Mapping[EntityKind, Tuple[str, ...]] = SENSITIVE_FIELDS,
        embedded_relations: Mapping[EntityKind, Mapping[str, EntityKind]] = EMBEDDED_SENSITIVE_RELATIONS,
    ):
        self.cipher = cipher
        self.sensitive_fields = sensitive_fields
        self.embedded_relations = embedded_relations

    def encrypt_value(self, value: str) -> str:
        if not value or is_encrypted(value):
            return value
        try:
            return ENCRYPTED_PREFIX + self.cipher.encrypt(value)
        except Exception as e:
            logger.error(f"Field encryption failed: {type(e).__name__}")
            raise EncryptionFailed() from e

    def decrypt_value(self, value: Any) -> Any:
        if not is_encrypted(value):
            return value
        try:
            return self.cipher.decrypt(value[len(ENCRYPTED_PREFIX):])
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Field decryption failed, returning stored value: {e}")
            return value

    def before_write(self, kind: EntityKind, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of payload with the sensitive fields of `kind` encrypted"""
        data = dict(payload)
        for field in self.sensitive_fields.get(kind, ()):
            value = data.get(field)
            if value:
                data[field] = self.encrypt_value(value)
        return data

    def _decrypt_record(self, kind: EntityKind, record: Dict[str, Any], nested: bool) -> Dict[str, Any]:
        data = dict(record)
        for field in self.sensitive_fields.get(kind, ()):
            if field in data:
                data[field] = self.decrypt_value(data[field])
        if nested:
            for relation, embedded_kind in self.embedded_relations.get(kind, {}).items():
                value = data.get(relation)
                if isinstance(value, dict):
                    data[relation] = self._decrypt_record(embedded_kind, value, nested=False)
                elif isinstance(value, list):
                    data[relation] = [
                        self._decrypt_record(embedded_kind, item, nested=False)
                        if isinstance(item, dict) else item
                        for item in value
                    ]
        return data

    def after_read(self, kind: EntityKind, result: Any) -> Any:
        """Decrypt one record or a list of records of `kind`, plus one level of embedded relations"""
        if isinstance(result, list):
            return [
                self._decrypt_record(kind, item, nested=True) if isinstance(item, dict) else item
                for item in result
            ]
        if isinstance(result, dict):
            return self._decrypt_record(kind, result, nested=True)
        return result


class EncryptedRepository:
    """TableRepository wrapper applying the interceptor on every read and write"""

    def __init__(self, repository: TableRepository, interceptor: FieldEncryptionInterceptor, kind: EntityKind):
        self.repository = repository
        self.interceptor = interceptor
        self.kind = kind

    @property
    def table(self) -> str:
        return self.repository.table

    def find(self, filters: Filters = None, columns: str = "*", **kwargs) -> List[Dict[str, Any]]:
        rows = self.repository.find(filters, columns=columns, **kwargs)
        return self.interceptor.after_read(self.kind, rows)

    def find_one(self, filters: Filters = None, columns: str = "*") -> Optional[Dict[str, Any]]:
        row = self.repository.find_one(filters, columns=columns)
        return self.interceptor.after_read(self.kind, row)

    def find_page(self, filters: Filters = None, **kwargs) -> Tuple[List[Dict[str, Any]], int]:
        rows, total = self.repository.find_page(filters, **kwargs)
        return self.interceptor.after_read(self.kind, rows), total

    def count(self, filters: Filters = None) -> int:
        return self.repository.count(filters)

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        row = self.repository.create(self.interceptor.before_write(self.kind, payload))
        return self.interceptor.after_read(self.kind, row)

    def create_many(self, payloads: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = self.repository.create_many([self.interceptor.before_write(self.kind, p) for p in payloads])
        return self.interceptor.after_read(self.kind, rows)

    def update(self, filters: Dict[str, Any], payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = self.repository.update(filters, self.interceptor.before_write(self.kind, payload))
        return self.interceptor.after_read(self.kind, rows)

    def delete(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self.interceptor.after_read(self.kind, self.repository.delete(filters))
