"""Tests for the S3 blob store."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from app.core.blob_store import S3BlobStore
from app.core.exceptions import BlobStoreError


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.mark.asyncio
async def test_upload_puts_object(s3_client: MagicMock) -> None:
    """Test uploads go to the configured bucket."""
    blob_store = S3BlobStore(s3_client, bucket="patient_documents", region="eu-west-1")

    await blob_store.upload("patients/p1/1.pdf", b"%PDF", "application/pdf")

    s3_client.put_object.assert_called_once_with(
        Bucket="patient_documents",
        Key="patients/p1/1.pdf",
        Body=b"%PDF",
        ContentType="application/pdf",
    )


@pytest.mark.asyncio
async def test_upload_failure(s3_client: MagicMock) -> None:
    """Test S3 errors surface as BlobStoreError."""
    s3_client.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}},
        "PutObject",
    )
    blob_store = S3BlobStore(s3_client, bucket="patient_documents", region="eu-west-1")

    with pytest.raises(BlobStoreError):
        await blob_store.upload("patients/p1/1.pdf", b"%PDF")


def test_public_url_default() -> None:
    """Test public URLs default to the virtual-hosted S3 form."""
    blob_store = S3BlobStore(MagicMock(), bucket="docs", region="eu-west-1")

    assert blob_store.get_public_url("patients/p1/1.pdf") == (
        "https://docs.s3.eu-west-1.amazonaws.com/patients/p1/1.pdf"
    )


def test_public_url_custom_base() -> None:
    """Test a configured public base URL is used when present."""
    blob_store = S3BlobStore(
        MagicMock(),
        bucket="docs",
        region="eu-west-1",
        public_base_url="https://cdn.clinic.test/docs/",
    )

    assert blob_store.get_public_url("patients/p1/1.pdf") == (
        "https://cdn.clinic.test/docs/patients/p1/1.pdf"
    )
