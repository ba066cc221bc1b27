"""
Object stores for cached API responses.
Each document is a whole JSON envelope stored under its cache path.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"


def encode_document(document: Dict[str, Any]) -> bytes:
    """Serialize a document as UTF-8 JSON"""
    return json.dumps(document, ensure_ascii=False).encode("utf-8")


class ObjectStore:
    """
    Key-value blob store holding JSON documents.

    Subclasses implement exists/read/write; get and put add the JSON layer.
    """

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def _read(self, path: str) -> bytes:
        raise NotImplementedError

    def _write(self, path: str, body: bytes) -> None:
        raise NotImplementedError

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a document.

        Args:
            path: Cache path, no leading slash

        Returns:
            Parsed document, or None if nothing is stored under the path
        """
        logger.info(f"Downloading from {self.describe()} {path}")
        if not self.exists(path):
            return None
        return json.loads(self._read(path).decode("utf-8"))

    def put(self, path: str, document: Dict[str, Any]) -> bool:
        """
        Store a document, replacing any previous one.

        Returns:
            True if the write succeeded, False otherwise
        """
        logger.info(f"Uploading to {self.describe()} {path}")
        try:
            self._write(path, encode_document(document))
            return True
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error(f"Failed to upload {path}: {e}")
            return False

    def describe(self) -> str:
        return self.__class__.__name__

    def close(self):
        """Release any held client"""


class S3ObjectStore(ObjectStore):
    """Documents in a single S3 bucket, keyed by cache path"""

    def __init__(
        self,
        bucket_name: str,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region_name: Optional[str] = None,
        client=None
    ):
        """
        Initialize the S3 store.

        Args:
            bucket_name: Bucket holding every cached document
            access_key: AWS access key id (default credential chain if None)
            secret_key: AWS secret access key
            region_name: Bucket region
            client: Prebuilt boto3 S3 client, mostly for tests
        """
        self.bucket_name = bucket_name
        self._access_key = access_key
        self._secret_key = secret_key
        self._region_name = region_name
        self._client = client

    @property
    def client(self):
        """Lazily built boto3 client"""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                aws_access_key_id=self._access_key,
                aws_secret_access_key=self._secret_key,
                region_name=self._region_name,
            )
            logger.info(f"S3 client created for bucket {self.bucket_name}")
        return self._client

    def exists(self, path: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=path)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def _read(self, path: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket_name, Key=path)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def _write(self, path: str, body: bytes) -> None:
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=path,
            Body=body,
            ContentType=CONTENT_TYPE,
            ContentLength=len(body),
        )

    def describe(self) -> str:
        return f"s3://{self.bucket_name}"

    def close(self):
        self._client = None


class LocalObjectStore(ObjectStore):
    """Documents as files under a directory, for development and tests"""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalObjectStore initialized at {self.root}")

    def _file(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise ValueError(f"Path escapes store root: {path}")
        return target

    def exists(self, path: str) -> bool:
        return self._file(path).is_file()

    def _read(self, path: str) -> bytes:
        return self._file(path).read_bytes()

    def _write(self, path: str, body: bytes) -> None:
        target = self._file(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        # Write then rename so readers never see a partial document.
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(body)
            os.replace(tmp_name, target)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def describe(self) -> str:
        return str(self.root)
