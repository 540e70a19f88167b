"""
Storage Service - product images in S3-compatible object storage (MinIO)

Raster images are converted to WebP before upload. Objects are served from
a public-read bucket at <MINIO_PUBLIC_URL>/<bucket>/<key>.

Author: TM3
Date: 2025-10-17
"""
import io
import json
import logging
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from PIL import Image

from factorybay.core.config import settings
from factorybay.core.database import now_millis
from factorybay.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/bmp",
    "image/tiff",
    "image/svg+xml",
    "image/avif",
}
MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_FILES_PER_UPLOAD = 10
WEBP_QUALITY = 85
PRESIGNED_URL_EXPIRY = 24 * 60 * 60


def validate_image_upload(files: List[Tuple[Optional[str], int]]) -> None:
    """
    Check a batch of (content_type, size) pairs before uploading

    Raises:
        ValidationError: No files, too many files, bad type or too large
    """
    if not files:
        raise ValidationError("No files provided")
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise ValidationError(f"Maximum {MAX_FILES_PER_UPLOAD} files allowed per upload")
    for content_type, size in files:
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"Invalid file type: {content_type}. Only images are allowed.")
        if size > MAX_IMAGE_BYTES:
            raise ValidationError("File size exceeds 5MB limit")


def create_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.get_minio_endpoint_url(),
        aws_access_key_id=settings.MINIO_ACCESS_KEY,
        aws_secret_access_key=settings.MINIO_SECRET_KEY,
        region_name=settings.MINIO_REGION,
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


def convert_to_webp(data: bytes, content_type: str) -> Tuple[bytes, str]:
    """
    Convert a raster image to WebP

    SVG and non-image content are returned unchanged. If Pillow cannot read
    or encode the image the original bytes are returned.

    Returns:
        (bytes, content_type)
    """
    if not content_type.startswith("image/") or content_type == "image/svg+xml":
        return data, content_type

    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode not in ("RGB", "RGBA"):
                has_alpha = "A" in img.getbands() or "transparency" in img.info
                img = img.convert("RGBA" if has_alpha else "RGB")
            out = io.BytesIO()
            img.save(out, format="WEBP", quality=WEBP_QUALITY, method=6)
        return out.getvalue(), "image/webp"
    except (OSError, ValueError) as e:
        logger.warning(f"WebP conversion failed, uploading original: {e}")
        return data, content_type


class StorageService:
    """Manages product image storage in the MinIO bucket."""

    def __init__(self, s3_client=None, bucket_name: Optional[str] = None):
        """
        Args:
            s3_client: Optional S3 client (for testing)
            bucket_name: Defaults to MINIO_BUCKET_NAME
        """
        self.s3_client = s3_client or create_s3_client()
        self.bucket_name = bucket_name or settings.MINIO_BUCKET_NAME

    def public_url(self, key: str) -> str:
        return f"{settings.MINIO_PUBLIC_URL.rstrip('/')}/{self.bucket_name}/{key}"

    def initialize_bucket(self) -> bool:
        """
        Create the bucket with a public-read policy if it does not exist

        Returns:
            True if the bucket was created, False if it already existed
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            logger.info(f"Bucket {self.bucket_name} already exists")
            return False
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code not in ("404", "NoSuchBucket", "NotFound"):
                raise

        self.s3_client.create_bucket(Bucket=self.bucket_name)
        policy = {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": ["*"]},
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{self.bucket_name}/*"],
                }
            ],
        }
        self.s3_client.put_bucket_policy(Bucket=self.bucket_name, Policy=json.dumps(policy))
        logger.info(f"Created bucket {self.bucket_name} with public read policy")
        return True

    def upload_file(self, data: bytes, file_name: str, content_type: str) -> str:
        """
        Upload one file, converting raster images to WebP

        Args:
            data: File content
            file_name: Original file name (directories are ignored)
            content_type: MIME type reported by the client

        Returns:
            Public URL of the stored object
        """
        body, stored_type = convert_to_webp(data, content_type)

        name = PurePosixPath(file_name.replace("\\", "/")).name or "upload"
        if stored_type == "image/webp" and content_type != "image/webp":
            name = f"{PurePosixPath(name).stem}.webp"
        key = f"{now_millis()}-{name}"

        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=body,
            ContentType=stored_type,
        )
        logger.info(f"Stored {key} ({len(body)} bytes, {stored_type})")
        return self.public_url(key)

    def upload_multiple_files(self, files: List[Tuple[bytes, str, str]]) -> List[str]:
        """Upload (data, file_name, content_type) triples in order"""
        return [self.upload_file(data, name, content_type) for data, name, content_type in files]

    @staticmethod
    def key_from_url(file_url: str) -> str:
        key = file_url.rstrip("/").split("/")[-1] if file_url else ""
        if not key:
            raise ValidationError("Invalid file URL")
        return key

    def delete_file(self, file_url: str) -> None:
        key = self.key_from_url(file_url)
        self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        logger.info(f"Deleted {key}")

    def delete_multiple_files(self, file_urls: List[str]) -> None:
        for url in file_urls:
            self.delete_file(url)

    def get_presigned_url(self, key: str, expiry: int = PRESIGNED_URL_EXPIRY) -> str:
        return self.s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket_name, "Key": key},
            ExpiresIn=expiry,
        )

    def list_files(self, prefix: str = "") -> List[Dict]:
        paginator = self.s3_client.get_paginator("list_objects_v2")
        files = []
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            for obj in page.get("Contents", []):
                files.append({
                    "key": obj["Key"],
                    "size": obj["Size"],
                    "lastModified": obj["LastModified"].isoformat(),
                    "url": self.public_url(obj["Key"]),
                })
        return files

    def get_file_stats(self, key: str) -> Dict:
        try:
            head = self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                raise NotFoundError(f"File {key} not found")
            raise
        return {
            "key": key,
            "size": head["ContentLength"],
            "contentType": head.get("ContentType"),
            "lastModified": head["LastModified"].isoformat(),
        }
