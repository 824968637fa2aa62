"""
DynamoDB-backed repository.

One table per collection, partition key `user_id` (app id + user namespace),
sort key `id`. Blocking boto3 calls run in a worker thread.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Set, Tuple

import boto3
from boto3.dynamodb.conditions import Key

from quotation_engine.config import EngineConfig
from quotation_engine.schemas.quotation_model import CollectionName
from quotation_engine.shared.serialization import convert_floats_to_decimal, decode_dynamo_image

from .base import Repository, Snapshot

logger = logging.getLogger(__name__)

LOG_PREFIX = "[DYNAMODB-REPOSITORY]"

PARTITION_KEY = "user_id"
SORT_KEY = "id"


def create_dynamodb_resource(config: EngineConfig):
    """Create a DynamoDB resource from the engine configuration."""
    if config.dynamodb_endpoint:
        # Use DynamoDB Local
        logger.info(f"{LOG_PREFIX} Using DynamoDB Local endpoint: {config.dynamodb_endpoint}")
        return boto3.resource('dynamodb', endpoint_url=config.dynamodb_endpoint, region_name=config.region)
    if config.aws_profile:
        logger.info(f"{LOG_PREFIX} Using AWS profile: {config.aws_profile} in region: {config.region}")
        session = boto3.Session(profile_name=config.aws_profile, region_name=config.region)
        return session.resource('dynamodb')
    # Default AWS credentials (IAM role, env vars or ~/.aws/credentials)
    logger.info(f"{LOG_PREFIX} Using default AWS credentials in region: {config.region}")
    return boto3.resource('dynamodb', region_name=config.region)


class DynamoDBRepository(Repository):
    """Repository storing quotes and products in two DynamoDB tables."""

    def __init__(self, config: Optional[EngineConfig] = None, dynamodb=None):
        super().__init__(config)
        self.dynamodb = dynamodb if dynamodb is not None else create_dynamodb_resource(self.config)
        self._table_names = {
            CollectionName.QUOTES: self.config.quotes_table,
            CollectionName.PRODUCTS: self.config.products_table,
        }
        self._tables: Dict[CollectionName, Any] = {}

    def get_table(self, collection: CollectionName):
        """Get DynamoDB table for a collection."""
        if collection not in self._tables:
            self._tables[collection] = self.dynamodb.Table(self._table_names[collection])
        return self._tables[collection]

    def partition_key(self, namespace: str) -> str:
        return f"{self.config.app_id}#{namespace}"

    def namespace_from_partition(self, partition: str) -> Optional[str]:
        prefix = f"{self.config.app_id}#"
        if not partition or not partition.startswith(prefix):
            return None
        return partition[len(prefix):]

    # ---------- primitives ----------

    async def _create_record(self, collection: CollectionName, namespace: str, data: Dict[str, Any]) -> str:
        record_id = str(uuid.uuid4())
        item = convert_floats_to_decimal({k: v for k, v in data.items() if k not in (PARTITION_KEY, SORT_KEY)})
        item[PARTITION_KEY] = self.partition_key(namespace)
        item[SORT_KEY] = record_id

        table = self.get_table(collection)
        await asyncio.to_thread(
            table.put_item,
            Item=item,
            ConditionExpression="attribute_not_exists(#id)",
            ExpressionAttributeNames={"#id": SORT_KEY},
        )
        return record_id

    async def _update_record(self, collection: CollectionName, namespace: str, record_id: str, data: Dict[str, Any]) -> None:
        update_expr_parts = []
        expr_attr_names = {"#pk": PARTITION_KEY, "#id": SORT_KEY}
        expr_attr_values = {}

        for idx, (field, value) in enumerate(data.items()):
            if field in (PARTITION_KEY, SORT_KEY):
                continue
            update_expr_parts.append(f"#f{idx} = :v{idx}")
            expr_attr_names[f"#f{idx}"] = field
            expr_attr_values[f":v{idx}"] = convert_floats_to_decimal(value)

        if not update_expr_parts:
            return

        table = self.get_table(collection)
        await asyncio.to_thread(
            table.update_item,
            Key={PARTITION_KEY: self.partition_key(namespace), SORT_KEY: record_id},
            UpdateExpression=f"SET {', '.join(update_expr_parts)}",
            ConditionExpression="attribute_exists(#pk) AND attribute_exists(#id)",
            ExpressionAttributeNames=expr_attr_names,
            ExpressionAttributeValues=expr_attr_values,
        )

    async def _delete_record(self, collection: CollectionName, namespace: str, record_id: str) -> None:
        table = self.get_table(collection)
        await asyncio.to_thread(
            table.delete_item,
            Key={PARTITION_KEY: self.partition_key(namespace), SORT_KEY: record_id},
            ConditionExpression="attribute_exists(#id)",
            ExpressionAttributeNames={"#id": SORT_KEY},
        )

    async def _list_records(self, collection: CollectionName, namespace: str) -> Snapshot:
        return await asyncio.to_thread(self._query_all, collection, namespace)

    def _query_all(self, collection: CollectionName, namespace: str) -> List[Dict[str, Any]]:
        table = self.get_table(collection)
        query_kwargs = {"KeyConditionExpression": Key(PARTITION_KEY).eq(self.partition_key(namespace))}
        records = []

        while True:
            response = table.query(**query_kwargs)
            for item in response.get('Items', []):
                record = dict(item)
                record.pop(PARTITION_KEY, None)
                records.append(record)

            last_evaluated_key = response.get('LastEvaluatedKey')
            if not last_evaluated_key:
                break
            query_kwargs["ExclusiveStartKey"] = last_evaluated_key

        logger.debug(f"{LOG_PREFIX} QUERY | Collection: {collection.value} | Count: {len(records)}")
        return records

    # ---------- streams ----------

    def _collection_for_arn(self, arn: str) -> Optional[CollectionName]:
        for collection, table_name in self._table_names.items():
            if f":table/{table_name}/" in (arn or ""):
                return collection
        return None

    async def handle_stream_event(self, event: Dict[str, Any]) -> int:
        """
        Push fresh snapshots for the namespaces touched by a DynamoDB Streams batch.

        Args:
            event: DynamoDB Streams Lambda event

        Returns:
            Number of (collection, namespace) pairs published
        """
        touched: Set[Tuple[CollectionName, str]] = set()

        for record in event.get('Records', []):
            collection = self._collection_for_arn(record.get('eventSourceARN', ''))
            if collection is None:
                logger.warning(f"{LOG_PREFIX} STREAM | Unknown table in {record.get('eventSourceARN')}, skipping")
                continue

            keys = decode_dynamo_image(record.get('dynamodb', {}).get('Keys'))
            namespace = self.namespace_from_partition(keys.get(PARTITION_KEY))
            if namespace is None:
                logger.warning(f"{LOG_PREFIX} STREAM | Record without {PARTITION_KEY} for app {self.config.app_id}, skipping")
                continue

            logger.info(f"{LOG_PREFIX} STREAM | {record.get('eventName')} | Collection: {collection.value} | ID: {str(keys.get(SORT_KEY))[:8]}...")
            touched.add((collection, namespace))

        for collection, namespace in touched:
            await self.publish(collection, namespace)

        return len(touched)
