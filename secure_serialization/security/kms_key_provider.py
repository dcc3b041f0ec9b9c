"""AWS KMS Key Provider - Envelope-encrypted data key for the secure codec

Self-Explanatory: A KeyProvider whose key is a KMS data encryption key.
Why: Keys must not be hardcoded or regenerated on restart (data loss).
How: The data encryption key (DEK) is stored encrypted by the KMS master key
(CMK); on first use KMS decrypts it and the plaintext DEK is kept in memory.

Architecture:
- Master Key (CMK) in AWS KMS, found by alias (never leaves AWS)
- DEK (AES-256) generated by KMS, persisted by the caller in encrypted form
- rotate() swaps in a fresh DEK; old payloads need the old DEK to decode
- No KMS access at startup -> local AES-256 key (development only)
"""

import base64
import threading
from datetime import datetime
from typing import Dict, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from secure_serialization.config import AWS_REGION, KMS_KEY_ALIAS
from secure_serialization.secure.key_provider import KeyProvider

logger = structlog.get_logger()


class KMSKeyProvider(KeyProvider):
    """AWS KMS-backed key provider with envelope encryption

    Args:
        encrypted_data_key: Previously generated DEK (CiphertextBlob); a new
            one is generated on first use if omitted
        key_alias: Alias of the KMS master key
        region: AWS region of the KMS key
        encryption_context: KMS encryption context bound to the DEK
        kms_client: Preconfigured boto3 KMS client (tests, custom sessions)
    """

    def __init__(
        self,
        encrypted_data_key: Optional[bytes] = None,
        key_alias: str = KMS_KEY_ALIAS,
        region: str = AWS_REGION,
        encryption_context: Optional[Dict[str, str]] = None,
        kms_client=None,
    ):
        self.key_alias = key_alias
        self.region = region
        self.encryption_context = encryption_context or {}
        self.encrypted_data_key = encrypted_data_key
        self._data_key: Optional[bytes] = None
        self._lock = threading.Lock()
        try:
            self.kms_client = kms_client or boto3.client("kms", region_name=region)
            self.master_key_id = self._get_master_key_id()
            logger.info(
                "KMS key provider initialized",
                region=region,
                key_id=self.master_key_id[:20] + "..."
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("KMS initialization failed", error=str(e))
            # Fallback to local key for development
            self.kms_client = None
            self.master_key_id = None
            logger.warning("Using local fallback key (development only)")

    def _get_master_key_id(self) -> str:
        """Resolve the master key alias to a key id

        Returns:
            KMS Key ID
        """
        response = self.kms_client.describe_key(KeyId=self.key_alias)
        key_id = response["KeyMetadata"]["KeyId"]
        logger.info("Using KMS master key", alias=self.key_alias)
        return key_id

    def current_key(self) -> Optional[bytes]:
        data_key = self._data_key
        if data_key is None:
            with self._lock:
                # Only the first caller loads; the rest reuse its DEK
                if self._data_key is None:
                    self._data_key = self._load_data_key()
                data_key = self._data_key
        return data_key

    def _load_data_key(self) -> bytes:
        if self.encrypted_data_key is None:
            plaintext_dek, self.encrypted_data_key = self.generate_data_key()
            return plaintext_dek
        return self.decrypt_data_key(self.encrypted_data_key)

    def generate_data_key(self):
        """Generate a data encryption key (DEK) using KMS

        Returns:
            Tuple of (plaintext_dek, encrypted_dek)
        """
        if not self.kms_client:
            return self._generate_local_key()

        try:
            response = self.kms_client.generate_data_key(
                KeyId=self.master_key_id,
                KeySpec="AES_256",
                EncryptionContext=self.encryption_context,
            )
        except ClientError as e:
            logger.error("Generate data key error", error=str(e))
            raise

        logger.info(
            "Data key generated",
            key_id=self.master_key_id[:20] + "...",
            context=self.encryption_context,
        )
        return response["Plaintext"], response["CiphertextBlob"]

    def decrypt_data_key(self, encrypted_dek: bytes) -> bytes:
        """Decrypt a data encryption key using KMS

        Args:
            encrypted_dek: Encrypted DEK from generate_data_key()

        Returns:
            Plaintext DEK
        """
        if not self.kms_client:
            return self._decrypt_local_key(encrypted_dek)

        try:
            response = self.kms_client.decrypt(
                CiphertextBlob=encrypted_dek,
                EncryptionContext=self.encryption_context,
            )
        except ClientError as e:
            logger.error("Decrypt data key error", error=str(e))
            raise

        logger.info("Data key decrypted", key_id=self.master_key_id[:20] + "...")
        return response["Plaintext"]

    def rotate(self) -> bytes:
        """Switch to a new DEK

        Returns:
            The new encrypted DEK, to be persisted by the caller
        """
        with self._lock:
            plaintext_dek, self.encrypted_data_key = self.generate_data_key()
            self._data_key = plaintext_dek
        logger.info("Data key rotated", rotated_at=datetime.utcnow().isoformat())
        return self.encrypted_data_key

    def _generate_local_key(self):
        """Fallback for local development (no KMS)"""
        plaintext_dek = AESGCM.generate_key(bit_length=256)
        # Mock encrypted DEK (just base64 for development)
        encrypted_dek = base64.b64encode(plaintext_dek)
        logger.warning("Using local key generation (development only)")
        return plaintext_dek, encrypted_dek

    def _decrypt_local_key(self, encrypted_dek: bytes) -> bytes:
        """Fallback decryption for local development"""
        plaintext_dek = base64.b64decode(encrypted_dek)
        logger.warning("Using local key decryption (development only)")
        return plaintext_dek

    def get_key_metadata(self) -> Dict:
        """Get master key metadata and rotation status

        Returns:
            Key metadata including rotation info
        """
        if not self.kms_client:
            return {"status": "local_fallback", "rotation_enabled": False}

        try:
            key_metadata = self.kms_client.describe_key(KeyId=self.master_key_id)["KeyMetadata"]
            rotation_response = self.kms_client.get_key_rotation_status(
                KeyId=self.master_key_id
            )
            return {
                "key_id": key_metadata["KeyId"],
                "enabled": key_metadata["Enabled"],
                "key_state": key_metadata["KeyState"],
                "rotation_enabled": rotation_response["KeyRotationEnabled"],
                "has_data_key": self.encrypted_data_key is not None,
            }

        except ClientError as e:
            logger.error("Get key metadata error", error=str(e))
            return {"error": str(e)}
