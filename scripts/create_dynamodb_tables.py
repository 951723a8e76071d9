"""
Script to create the DynamoDB tables used by the farm record services.

Run this script once per environment:
    python scripts/create_dynamodb_tables.py

Creates one table per collection (hash key "Id", number) plus the counters
table that hands out record ids (hash key "collection", string). Table names
honour DYNAMO_TABLE_PREFIX and DYNAMO_COUNTERS_TABLE; DYNAMO_ENDPOINT_URL
points the script at DynamoDB Local.

Requirements:
    - AWS credentials configured (via environment variables, IAM role, or ~/.aws/credentials)
    - Appropriate AWS permissions to create DynamoDB tables
"""
import boto3
from botocore.exceptions import ClientError

from farmrecords import CROP, FARM, FINANCIAL_ENTRY, TASK, settings

COLLECTIONS = [FARM.collection, CROP.collection, FINANCIAL_ENTRY.collection, TASK.collection]


def _client():
    return boto3.client("dynamodb", region_name=settings.AWS_REGION, endpoint_url=settings.DYNAMO_ENDPOINT_URL)


def create_table(dynamodb, table_name, key_name, key_type):
    """Create one PAY_PER_REQUEST table; an existing table counts as success."""
    try:
        response = dynamodb.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": key_name, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": key_name, "AttributeType": key_type}],
            BillingMode="PAY_PER_REQUEST",
        )
        print(f"Creating table {table_name}...")
        print(f"Table ARN: {response['TableDescription']['TableArn']}")

        waiter = dynamodb.get_waiter("table_exists")
        waiter.wait(TableName=table_name)
        print(f"✓ Table {table_name} created successfully!")
        return True
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            print(f"Table {table_name} already exists.")
            return True
        print(f"Error creating table {table_name}: {e}")
        return False


def create_tables():
    dynamodb = _client()
    ok = create_table(dynamodb, settings.DYNAMO_COUNTERS_TABLE, "collection", "S")
    for collection in COLLECTIONS:
        ok = create_table(dynamodb, f"{settings.DYNAMO_TABLE_PREFIX}{collection}", "Id", "N") and ok
    return ok


if __name__ == "__main__":
    raise SystemExit(0 if create_tables() else 1)
