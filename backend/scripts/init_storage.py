"""
Create the image bucket in MinIO/S3 and make it publicly readable

Usage:
    cd backend && python3 scripts/init_storage.py
"""
import os
import sys
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from botocore.exceptions import BotoCoreError, ClientError

from factorybay.core.config import settings
from factorybay.services.storage_service import StorageService


def main():
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    print(f"🪣 Initializing bucket '{settings.MINIO_BUCKET_NAME}' at {settings.get_minio_endpoint_url()}")

    try:
        created = StorageService().initialize_bucket()
    except (ClientError, BotoCoreError) as e:
        print(f"❌ Storage initialization failed: {e}")
        sys.exit(1)

    if created:
        print("✅ Bucket created with public read policy")
    else:
        print("✅ Bucket already exists")


if __name__ == "__main__":
    main()
