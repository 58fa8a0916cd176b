"""Example 02: Cached S3 Objects.

This example demonstrates the cloud path against an S3-compatible endpoint:
- CloudOptions for a MinIO endpoint
- First access downloads into content_<etag>
- Second access is served from the cache after a single HEAD
- Overwriting the object invalidates and evicts the previous version

IMPORTANT: Requires a running S3-compatible endpoint:
  1. MinIO server running: docker run -p 9000:9000 minio/minio server /data
  2. AWS credentials configured (environment or AWS profile)
  3. Set OBSTINATE_S3_ENDPOINT / OBSTINATE_S3_BUCKET to override defaults
"""

import logging
import os
import tempfile

import boto3

from obstinate import CloudOptions, Mmap, ObstinateConfig, download_file


def main():
    """Run S3 cache example."""
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("botocore").setLevel(logging.WARNING)

    endpoint = os.getenv("OBSTINATE_S3_ENDPOINT", "http://127.0.0.1:9000")
    bucket = os.getenv("OBSTINATE_S3_BUCKET", "obstinate-example")
    url = f"s3://{bucket}/example/data.csv"

    print("=" * 80)
    print("EXAMPLE 02: CACHED S3 OBJECTS")
    print("=" * 80)

    s3 = boto3.client("s3", endpoint_url=endpoint, region_name="us-east-1")
    if bucket not in {b["Name"] for b in s3.list_buckets().get("Buckets", [])}:
        s3.create_bucket(Bucket=bucket)
    s3.put_object(Bucket=bucket, Key="example/data.csv", Body=b"x,y\n1,2\n")

    options = CloudOptions.from_env("aws").merged(
        CloudOptions().with_aws(
            {"endpoint": endpoint, "allow_http": "true", "virtual_hosted_style_request": "false"}
        )
    )
    config = ObstinateConfig(cache_root=tempfile.mkdtemp(prefix="obstinate-cache-"))

    # Section 1: First access downloads
    with Mmap.from_url(url, options=options, config=config) as view:
        print(f"\nfirst read    = {bytes(view)!r}")

    # Section 2: Second access is a cache hit
    with download_file(url, options=options, config=config) as local:
        print(f"cached        = {local.cached} ({local.path.name})")

    # Section 3: Overwrite invalidates
    s3.put_object(Bucket=bucket, Key="example/data.csv", Body=b"x,y\n3,4\n")
    with download_file(url, options=options, config=config) as local:
        print(f"after update  = {local.read()!r} ({local.path.name})")
        print(f"cache entries = {sorted(p.name for p in local.path.parent.iterdir())}")

    print("\n✓ Done")


if __name__ == "__main__":
    main()
