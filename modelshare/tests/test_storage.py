import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from modelshare.storage import (
    FirebaseStorageClient,
    InMemoryStorageClient,
    S3StorageClient,
)


class InMemoryStorageClientTests(unittest.TestCase):
    def test_upload_returns_reference_and_keeps_bytes(self):
        storage = InMemoryStorageClient()
        url = storage.upload_bytes("models/cube.obj", b"v 0 0 0", "model/obj")
        self.assertEqual(url, "https://example.test/storage/models/cube.obj")
        self.assertEqual(storage.stored_objects["models/cube.obj"], b"v 0 0 0")
        self.assertEqual(storage.content_types["models/cube.obj"], "model/obj")

    def test_same_path_overwrites(self):
        storage = InMemoryStorageClient()
        storage.upload_bytes("models/model.obj", b"first")
        storage.upload_bytes("models/model.obj", b"second")
        self.assertEqual(storage.stored_objects["models/model.obj"], b"second")

    def test_presign_get(self):
        url = InMemoryStorageClient().presign_get("models/cube.obj", expires_in=600)
        self.assertEqual(
            url, "https://example.test/storage/models/cube.obj?op=get&expires=600"
        )


class FirebaseStorageClientTests(unittest.TestCase):
    def test_upload_sets_download_token_and_builds_url(self):
        bucket = MagicMock()
        bucket.name = "demo.appspot.com"
        blob = bucket.blob.return_value
        storage = FirebaseStorageClient(bucket=bucket)

        url = storage.upload_bytes("thumbnails/cube.png", b"png", "image/png")

        bucket.blob.assert_called_with("thumbnails/cube.png")
        blob.upload_from_string.assert_called_once_with(b"png", content_type="image/png")
        token = blob.metadata["firebaseStorageDownloadTokens"]
        self.assertEqual(
            url,
            "https://firebasestorage.googleapis.com/v0/b/demo.appspot.com/o/"
            f"thumbnails%2Fcube.png?alt=media&token={token}",
        )

    def test_presign_get_uses_signed_url(self):
        bucket = MagicMock()
        blob = bucket.blob.return_value
        blob.generate_signed_url.return_value = "https://storage.googleapis.com/signed"

        url = FirebaseStorageClient(bucket=bucket).presign_get("models/cube.obj", 120)

        self.assertEqual(url, "https://storage.googleapis.com/signed")
        blob.generate_signed_url.assert_called_once_with(expiration=timedelta(seconds=120))


class S3StorageClientTests(unittest.TestCase):
    @patch("modelshare.storage.boto3.client")
    def test_upload_returns_presigned_url(self, mock_client_factory):
        s3 = mock_client_factory.return_value
        s3.generate_presigned_url.return_value = "https://bucket.example/models/cube.obj?sig"
        storage = S3StorageClient(
            bucket="bucket",
            region="us-east-1",
            endpoint="",
            access_key_id="key",
            secret_access_key="secret",
            url_expires_in=600,
        )

        url = storage.upload_bytes("models/cube.obj", b"data", "model/obj")

        self.assertEqual(url, "https://bucket.example/models/cube.obj?sig")
        s3.put_object.assert_called_once_with(
            Bucket="bucket", Key="models/cube.obj", Body=b"data", ContentType="model/obj"
        )
        s3.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "bucket", "Key": "models/cube.obj"},
            ExpiresIn=600,
        )


if __name__ == "__main__":
    unittest.main()
