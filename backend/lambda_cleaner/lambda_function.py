import os
import json
import logging
from datetime import datetime, timedelta, timezone

import boto3
import psycopg2

# -----------------------------
# Logging configuration
# -----------------------------
logger = logging.getLogger()
logger.setLevel(logging.INFO)

formatter = logging.Formatter(
    "%(asctime)s - %(levelname)s - %(message)s"
)
for handler in logger.handlers:
    handler.setFormatter(formatter)

DELETE_BATCH_SIZE = 1000

# Tables whose storage_path column references objects in the photo bucket
REFERENCING_TABLES = ("photos", "food_photos")


def load_settings():
    return {
        "db_host": os.environ["DB_HOST"],
        "db_name": os.environ["DB_NAME"],
        "db_user": os.environ["DB_USER"],
        "db_password": os.environ["DB_PASSWORD"],
        "bucket": os.environ["S3_BUCKET"],
        "region": os.environ.get("AWS_REGION", "us-east-1"),
        "grace_seconds": int(os.environ.get("ORPHAN_GRACE_SECONDS", "3600")),
    }


def referenced_keys(conn):
    keys = set()
    with conn.cursor() as cur:
        for table in REFERENCING_TABLES:
            cur.execute(f"SELECT storage_path FROM {table}")
            keys.update(row[0] for row in cur.fetchall() if row[0])
    return keys


def find_orphans(s3, bucket, referenced, cutoff):
    """Objects older than `cutoff` that no row points at."""
    orphans = []
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket):
        for obj in page.get("Contents", []):
            # Younger objects may belong to an upload whose row is still being written
            if obj["LastModified"] >= cutoff:
                continue
            if obj["Key"] not in referenced:
                orphans.append(obj["Key"])
    return orphans


def delete_objects(s3, bucket, keys):
    deleted = 0
    objects = [{"Key": key} for key in keys]
    for i in range(0, len(objects), DELETE_BATCH_SIZE):
        chunk = objects[i : i + DELETE_BATCH_SIZE]
        logger.info(f"Deleting S3 chunk of size {len(chunk)}")
        resp = s3.delete_objects(
            Bucket=bucket,
            Delete={"Objects": chunk, "Quiet": True},
        )
        errors = resp.get("Errors", [])
        deleted += len(chunk) - len(errors)
        if errors:
            logger.error(f"S3 deletion errors: {errors}")
    return deleted


def lambda_handler(event, context):
    logger.info("=== Orphan sweep started ===")
    logger.info(f"Incoming event: {json.dumps(event)}")
    logger.info(f"Request ID: {context.aws_request_id}")

    settings = load_settings()
    s3 = boto3.client("s3", region_name=settings["region"])
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=settings["grace_seconds"])

    logger.info(
        f"Connecting to RDS: host={settings['db_host']}, db={settings['db_name']}, user={settings['db_user']}"
    )
    try:
        conn = psycopg2.connect(
            host=settings["db_host"],
            dbname=settings["db_name"],
            user=settings["db_user"],
            password=settings["db_password"],
        )
    except Exception:
        logger.exception("Failed to connect to database!")
        raise

    try:
        referenced = referenced_keys(conn)
    finally:
        conn.close()
        logger.info("Database connection closed.")
    logger.info(f"{len(referenced)} storage paths referenced by rows.")

    orphans = find_orphans(s3, settings["bucket"], referenced, cutoff)
    logger.info(f"Found {len(orphans)} orphaned objects older than {cutoff.isoformat()}.")

    deleted_files = delete_objects(s3, settings["bucket"], orphans) if orphans else 0

    logger.info(f"=== Orphan sweep completed === Deleted files: {deleted_files}")
    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "orphaned_files": len(orphans),
                "deleted_files": deleted_files,
            }
        ),
    }
